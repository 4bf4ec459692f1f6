from __future__ import annotations

import os

from sqlalchemy import engine_from_config, pool
from sqlalchemy.engine import Connection

from alembic import context

config = context.config

# Listing storage is plain SQL in revisions; there is no ORM metadata to autogenerate from.
target_metadata = None

if "://" in os.environ.get("WLVAULT_PG_DSN", ""):
    config.set_main_option("sqlalchemy.url", os.environ["WLVAULT_PG_DSN"].replace("%", "%%"))


def _migrate(connection: Connection) -> None:
    context.configure(connection=connection, target_metadata=target_metadata)
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_offline() -> None:
    """
    Emit migration SQL without a database connection.

    Related:
      - alembic/versions/20260301_0001_listing_records.py
      - apps/migrations/main.py
    """
    context.configure(
        url=config.get_main_option("sqlalchemy.url"),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """
    Migrate on the connection handed over by `apps.migrations.main`, or open a fresh one.

    Args:
        None.
    Returns:
        None.
    Assumptions:
        A handed-over connection already holds the migration advisory lock.
    Raises:
        Exception: Alembic configuration/runtime errors.
    Side Effects:
        Applies schema changes.
    """
    handed_over = config.attributes.get("connection")
    if isinstance(handed_over, Connection):
        _migrate(handed_over)
        return

    engine = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    with engine.connect() as connection:
        _migrate(connection)


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
