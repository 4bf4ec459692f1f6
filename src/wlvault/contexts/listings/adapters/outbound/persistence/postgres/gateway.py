from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterator, Mapping, Protocol, cast

import psycopg
from psycopg.rows import dict_row


class ListingsPostgresGateway(Protocol):
    """
    ListingsPostgresGateway - the two SQL shapes the listing record repository needs.

    Related:
      - src/wlvault/contexts/listings/adapters/outbound/persistence/postgres/
        listing_record_repository.py
      - alembic/versions/20260301_0001_listing_records.py
    """

    def fetch_one(self, *, query: str, parameters: Mapping[str, Any]) -> Mapping[str, Any] | None:
        ...

    def fetch_all(
        self,
        *,
        query: str,
        parameters: Mapping[str, Any],
    ) -> tuple[Mapping[str, Any], ...]:
        ...


class PsycopgListingsPostgresGateway(ListingsPostgresGateway):
    """
    PsycopgListingsPostgresGateway - psycopg3 gateway opening one short connection per statement.

    Args:
        dsn: libpq DSN (URL or conninfo form).
        connect_timeout_s: Seconds libpq waits for the server before failing.
    Assumptions:
        Each statement is its own transaction; `nextval` and upserts need nothing wider.
    Raises:
        ValueError: If `dsn` is blank or the timeout is not positive.
    Side Effects:
        None until a statement runs.
    """

    def __init__(self, *, dsn: str, connect_timeout_s: int = 5) -> None:
        if not dsn.strip():
            raise ValueError("PsycopgListingsPostgresGateway requires non-empty dsn")
        if connect_timeout_s <= 0:
            raise ValueError("PsycopgListingsPostgresGateway connect_timeout_s must be > 0")
        self._dsn = dsn.strip()
        self._connect_timeout_s = connect_timeout_s

    def fetch_one(self, *, query: str, parameters: Mapping[str, Any]) -> Mapping[str, Any] | None:
        with self._cursor(query=query, parameters=parameters) as cursor:
            row = cursor.fetchone()
        return dict(row) if row is not None else None

    def fetch_all(
        self,
        *,
        query: str,
        parameters: Mapping[str, Any],
    ) -> tuple[Mapping[str, Any], ...]:
        with self._cursor(query=query, parameters=parameters) as cursor:
            rows = cursor.fetchall()
        return tuple(dict(row) for row in rows)

    @contextmanager
    def _cursor(self, *, query: str, parameters: Mapping[str, Any]) -> Iterator[Any]:
        # Leaving the connection block commits, or rolls back if the body raised.
        with psycopg.connect(
            self._dsn,
            row_factory=cast(Any, dict_row),
            connect_timeout=self._connect_timeout_s,
        ) as connection:
            with connection.cursor() as cursor:
                cursor.execute(cast(Any, query), parameters)
                yield cursor


__all__ = ["ListingsPostgresGateway", "PsycopgListingsPostgresGateway"]
