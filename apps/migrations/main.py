from __future__ import annotations

import argparse
import os
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, Mapping

from psycopg.conninfo import conninfo_to_dict
from sqlalchemy import create_engine, text
from sqlalchemy.engine import URL, Connection
from sqlalchemy.engine.url import make_url

from alembic import command
from alembic.config import Config

_PG_DSN_ENV = "WLVAULT_PG_DSN"
_DEFAULT_LOCK_KEY = 71829301457
_URL_SCHEMES = frozenset({"postgresql", "postgres", "postgresql+psycopg"})
_CONNINFO_CREDENTIAL_KEYS = frozenset({"host", "hostaddr", "port", "dbname", "user", "password"})


def _build_parser() -> argparse.ArgumentParser:
    """
    Build the `wlvault-migrations` command parser.

    Args:
        None.
    Returns:
        argparse.ArgumentParser: Parser for `--dsn` and `--lock-key`.
    Assumptions:
        An empty `--dsn` defers to the environment in `_resolve_dsn`.
    Raises:
        None.
    Side Effects:
        None.

    Related:
      - alembic.ini
      - alembic/env.py
    """
    parser = argparse.ArgumentParser(
        prog="wlvault-migrations",
        description="Upgrade the listing record schema to Alembic head.",
    )
    parser.add_argument("--dsn", default="", help=f"Postgres DSN (default: ${_PG_DSN_ENV}).")
    parser.add_argument(
        "--lock-key",
        type=int,
        default=_DEFAULT_LOCK_KEY,
        help="pg_advisory_lock key serializing concurrent migration runs.",
    )
    return parser


def _resolve_dsn(*, arg_dsn: str, environ: Mapping[str, str]) -> str:
    """
    Pick the migration DSN: `--dsn` first, then `WLVAULT_PG_DSN`.

    Args:
        arg_dsn: CLI `--dsn` value.
        environ: Environment mapping.
    Returns:
        str: Stripped, non-empty DSN.
    Assumptions:
        Whitespace-only values count as missing.
    Raises:
        ValueError: If neither source provides a DSN.
    Side Effects:
        None.
    """
    for candidate in (arg_dsn, environ.get(_PG_DSN_ENV, "")):
        if candidate.strip():
            return candidate.strip()
    raise ValueError(f"Migration DSN is required via --dsn or {_PG_DSN_ENV}")


def _to_sqlalchemy_psycopg_url(*, dsn: str) -> URL:
    """
    Turn a URL-style or libpq conninfo DSN into a `postgresql+psycopg` SQLAlchemy URL.

    Args:
        dsn: Raw Postgres DSN.
    Returns:
        URL: SQLAlchemy URL bound to the psycopg driver.
    Assumptions:
        Anything containing `://` is a URL; everything else is conninfo, whose passwords
        may hold `@`, `:` or `%` without escaping.
    Raises:
        ValueError: If the DSN is blank, names another driver, or cannot be parsed.
    Side Effects:
        None.
    """
    normalized = dsn.strip()
    if not normalized:
        raise ValueError("Postgres DSN cannot be empty")
    if "://" not in normalized:
        return _conninfo_to_url(conninfo=normalized)

    url = make_url(normalized)
    if url.drivername not in _URL_SCHEMES:
        raise ValueError(
            f"Unsupported Postgres URL scheme {url.drivername!r}; use postgresql:// or postgres://"
        )
    return url.set(drivername="postgresql+psycopg")


def _conninfo_to_url(*, conninfo: str) -> URL:
    try:
        fields: dict[str, Any] = conninfo_to_dict(conninfo)
    except Exception as error:  # noqa: BLE001
        raise ValueError("Postgres DSN must be URL or libpq conninfo format") from error

    def _field(name: str) -> str | None:
        value = str(fields.get(name, "")).strip()
        return value or None

    port = _field("port")
    if port is not None and not port.isdigit():
        raise ValueError(f"Conninfo port must be numeric, got {port!r}")

    return URL.create(
        "postgresql+psycopg",
        username=_field("user"),
        password=_field("password"),
        host=_field("host") or _field("hostaddr"),
        port=int(port) if port is not None else None,
        database=_field("dbname"),
        query={
            key: str(value)
            for key, value in sorted(fields.items())
            if key not in _CONNINFO_CREDENTIAL_KEYS and str(value)
        },
    )


@contextmanager
def _advisory_lock(*, connection: Connection, lock_key: int) -> Iterator[None]:
    connection.execute(text("SELECT pg_advisory_lock(:key)"), {"key": lock_key})
    print(f"Acquired advisory lock {lock_key}")
    try:
        yield
    finally:
        connection.execute(text("SELECT pg_advisory_unlock(:key)"), {"key": lock_key})
        connection.commit()
        print(f"Released advisory lock {lock_key}")


def _upgrade_head_under_lock(*, config: Config, sqlalchemy_url: URL, lock_key: int) -> None:
    """
    Upgrade to head on one connection that also holds the advisory lock.

    Args:
        config: Alembic config; receives the connection under `attributes["connection"]`.
        sqlalchemy_url: Target database URL.
        lock_key: Advisory lock key.
    Returns:
        None.
    Assumptions:
        `alembic/env.py` reuses `config.attributes["connection"]` when present.
    Raises:
        Exception: Database and Alembic failures propagate after rollback.
    Side Effects:
        Applies pending schema revisions.
    """
    engine = create_engine(sqlalchemy_url, pool_pre_ping=True)
    try:
        with engine.connect() as connection, _advisory_lock(
            connection=connection,
            lock_key=lock_key,
        ):
            config.attributes["connection"] = connection
            try:
                command.upgrade(config, "head")
            except Exception:  # noqa: BLE001
                connection.rollback()
                raise
            connection.commit()
    finally:
        engine.dispose()


def main(argv: list[str] | None = None) -> int:
    """
    Apply listing storage migrations; return non-zero on any failure.

    Related:
      - alembic/env.py
      - alembic/versions/20260301_0001_listing_records.py
    """
    args = _build_parser().parse_args(argv)
    repo_root = Path(__file__).resolve().parents[2]

    try:
        sqlalchemy_url = _to_sqlalchemy_psycopg_url(
            dsn=_resolve_dsn(arg_dsn=args.dsn, environ=os.environ)
        )
        alembic_ini = repo_root / "alembic.ini"
        if not alembic_ini.is_file():
            raise ValueError(f"Missing Alembic config file: {alembic_ini}")
        config = Config(str(alembic_ini))
        config.set_main_option("script_location", str(repo_root / "alembic"))

        print(f"Upgrading {sqlalchemy_url.render_as_string(hide_password=True)} to head")
        _upgrade_head_under_lock(
            config=config,
            sqlalchemy_url=sqlalchemy_url,
            lock_key=args.lock_key,
        )
    except Exception as error:  # noqa: BLE001
        print(f"Migration failed: {error}")
        return 1

    print("Migration success")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
