from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping

from psycopg import errors as pg_errors

from wlvault.contexts.listings.adapters.outbound.persistence.postgres.gateway import (
    ListingsPostgresGateway,
)
from wlvault.contexts.listings.application.ports import ListingRecordRepository
from wlvault.contexts.listings.domain.entities import (
    IdSource,
    ListingPublicMetadata,
    ListingRecord,
)
from wlvault.contexts.listings.domain.errors import (
    ListingAlreadyLinkedError,
    ListingRecordNotFoundError,
)
from wlvault.shared_kernel.primitives import EvmAddress

_COLUMNS = """
            temp_id,
            project_name,
            quantity,
            price_eth,
            price_minor_units,
            collateral_eth,
            mint_date,
            seller,
            created_at,
            on_chain_id,
            tx_hash,
            linked,
            id_source,
            pending_tx_hash,
            linked_at
"""


class PostgresListingRecordRepository(ListingRecordRepository):
    """
    PostgresListingRecordRepository - Postgres adapter for off-chain listing records.

    Temporary ids come from a database sequence; linking is a conditional
    `UPDATE ... WHERE linked = FALSE`, and a unique index on `on_chain_id` rejects a second
    record claiming the same ledger id.

    Related:
      - src/wlvault/contexts/listings/application/ports/listing_record_repository.py
      - src/wlvault/contexts/listings/adapters/outbound/persistence/postgres/gateway.py
      - alembic/versions/20260301_0001_listing_records.py
    """

    def __init__(
        self,
        *,
        gateway: ListingsPostgresGateway,
        table_name: str = "listing_records",
        sequence_name: str = "listing_records_temp_id_seq",
    ) -> None:
        """
        Initialize repository with SQL gateway, table, and temp id sequence names.

        Args:
            gateway: SQL gateway abstraction.
            table_name: Target table name.
            sequence_name: Sequence used for temporary id allocation.
        Returns:
            None.
        Assumptions:
            Schema follows migration `20260301_0001`.
        Raises:
            ValueError: If dependencies are invalid.
        Side Effects:
            None.
        """
        if gateway is None:  # type: ignore[truthy-bool]
            raise ValueError("PostgresListingRecordRepository requires gateway")
        normalized_table_name = table_name.strip()
        normalized_sequence_name = sequence_name.strip()
        if not normalized_table_name:
            raise ValueError("PostgresListingRecordRepository requires non-empty table_name")
        if not normalized_sequence_name:
            raise ValueError("PostgresListingRecordRepository requires non-empty sequence_name")
        self._gateway = gateway
        self._table_name = normalized_table_name
        self._sequence_name = normalized_sequence_name

    def allocate_temp_id(self) -> int:
        row = self._gateway.fetch_one(
            query="SELECT nextval(%(sequence_name)s) AS temp_id",
            parameters={"sequence_name": self._sequence_name},
        )
        if row is None:
            raise ValueError("PostgresListingRecordRepository could not allocate temp_id")
        return int(row["temp_id"])

    def put(self, *, record: ListingRecord) -> ListingRecord:
        """
        Upsert one record by temporary id and return the stored snapshot.

        Args:
            record: Record snapshot to persist.
        Returns:
            ListingRecord: Persisted record.
        Assumptions:
            Temporary id was allocated by `allocate_temp_id`.
        Raises:
            ListingAlreadyLinkedError: If another row already holds the on-chain id.
            ValueError: If the returned row cannot be mapped.
        Side Effects:
            Executes one SQL insert statement.
        """
        query = f"""
        INSERT INTO {self._table_name}
        ({_COLUMNS})
        VALUES
        (
            %(temp_id)s,
            %(project_name)s,
            %(quantity)s,
            %(price_eth)s,
            %(price_minor_units)s,
            %(collateral_eth)s,
            %(mint_date)s,
            %(seller)s,
            %(created_at)s,
            %(on_chain_id)s,
            %(tx_hash)s,
            %(linked)s,
            %(id_source)s,
            %(pending_tx_hash)s,
            %(linked_at)s
        )
        ON CONFLICT (temp_id) DO UPDATE SET
            project_name = EXCLUDED.project_name,
            quantity = EXCLUDED.quantity,
            price_eth = EXCLUDED.price_eth,
            price_minor_units = EXCLUDED.price_minor_units,
            collateral_eth = EXCLUDED.collateral_eth,
            mint_date = EXCLUDED.mint_date,
            seller = EXCLUDED.seller,
            on_chain_id = EXCLUDED.on_chain_id,
            tx_hash = EXCLUDED.tx_hash,
            linked = EXCLUDED.linked,
            id_source = EXCLUDED.id_source,
            pending_tx_hash = EXCLUDED.pending_tx_hash,
            linked_at = EXCLUDED.linked_at
        RETURNING {_COLUMNS}
        """
        try:
            row = self._gateway.fetch_one(query=query, parameters=_record_parameters(record=record))
        except pg_errors.UniqueViolation as error:
            raise ListingAlreadyLinkedError(
                temp_id=record.temp_id,
                on_chain_id=record.on_chain_id or 0,
            ) from error
        if row is None:
            raise ValueError("PostgresListingRecordRepository.put returned no row")
        return _map_listing_record_row(row=row)

    def get(self, *, temp_id: int) -> ListingRecord | None:
        row = self._gateway.fetch_one(
            query=f"SELECT {_COLUMNS} FROM {self._table_name} WHERE temp_id = %(temp_id)s",
            parameters={"temp_id": temp_id},
        )
        if row is None:
            return None
        return _map_listing_record_row(row=row)

    def get_by_on_chain_id(self, *, on_chain_id: int) -> ListingRecord | None:
        row = self._gateway.fetch_one(
            query=(
                f"SELECT {_COLUMNS} FROM {self._table_name} "
                "WHERE on_chain_id = %(on_chain_id)s"
            ),
            parameters={"on_chain_id": on_chain_id},
        )
        if row is None:
            return None
        return _map_listing_record_row(row=row)

    def list(self) -> tuple[ListingRecord, ...]:
        rows = self._gateway.fetch_all(
            query=f"SELECT {_COLUMNS} FROM {self._table_name} ORDER BY temp_id ASC",
            parameters={},
        )
        return tuple(_map_listing_record_row(row=row) for row in rows)

    def link_if_unlinked(
        self,
        *,
        temp_id: int,
        on_chain_id: int,
        tx_hash: str | None,
        id_source: IdSource,
        linked_at: datetime,
    ) -> tuple[ListingRecord, bool]:
        """
        Link record with a conditional update; re-read the row when the condition fails.

        Args:
            temp_id: Temporary record id.
            on_chain_id: Canonical ledger listing id.
            tx_hash: Creation transaction hash.
            id_source: Origin of the on-chain id.
            linked_at: UTC link timestamp.
        Returns:
            tuple[ListingRecord, bool]: Current record and whether this call applied the link.
        Assumptions:
            Concurrent callers race on `linked = FALSE`; exactly one wins.
        Raises:
            ListingRecordNotFoundError: If the record does not exist.
            ListingAlreadyLinkedError: If another row already holds `on_chain_id`.
        Side Effects:
            Executes one SQL update and, when it does not apply, one select.
        """
        query = f"""
        UPDATE {self._table_name}
        SET
            on_chain_id = %(on_chain_id)s,
            tx_hash = %(tx_hash)s,
            linked = TRUE,
            id_source = %(id_source)s,
            pending_tx_hash = NULL,
            linked_at = %(linked_at)s
        WHERE temp_id = %(temp_id)s
          AND linked = FALSE
        RETURNING {_COLUMNS}
        """
        try:
            row = self._gateway.fetch_one(
                query=query,
                parameters={
                    "temp_id": temp_id,
                    "on_chain_id": on_chain_id,
                    "tx_hash": tx_hash,
                    "id_source": id_source,
                    "linked_at": linked_at,
                },
            )
        except pg_errors.UniqueViolation as error:
            raise ListingAlreadyLinkedError(temp_id=temp_id, on_chain_id=on_chain_id) from error
        if row is not None:
            return _map_listing_record_row(row=row), True

        current = self.get(temp_id=temp_id)
        if current is None:
            raise ListingRecordNotFoundError(listing_id=temp_id)
        return current, False

    def remember_pending_tx(self, *, temp_id: int, tx_hash: str) -> ListingRecord:
        row = self._gateway.fetch_one(
            query=(
                f"UPDATE {self._table_name} SET pending_tx_hash = %(tx_hash)s "
                f"WHERE temp_id = %(temp_id)s RETURNING {_COLUMNS}"
            ),
            parameters={"temp_id": temp_id, "tx_hash": tx_hash},
        )
        if row is None:
            raise ListingRecordNotFoundError(listing_id=temp_id)
        return _map_listing_record_row(row=row)


def _record_parameters(*, record: ListingRecord) -> dict[str, Any]:
    metadata = record.metadata
    return {
        "temp_id": record.temp_id,
        "project_name": metadata.project_name,
        "quantity": metadata.quantity,
        "price_eth": metadata.price_eth,
        "price_minor_units": metadata.price_minor_units,
        "collateral_eth": metadata.collateral_eth,
        "mint_date": metadata.mint_date,
        "seller": record.seller.value,
        "created_at": record.created_at,
        "on_chain_id": record.on_chain_id,
        "tx_hash": record.tx_hash,
        "linked": record.linked,
        "id_source": record.id_source,
        "pending_tx_hash": record.pending_tx_hash,
        "linked_at": record.linked_at,
    }


def _map_listing_record_row(*, row: Mapping[str, Any]) -> ListingRecord:
    """
    Map SQL row mapping into immutable domain `ListingRecord` entity.

    Args:
        row: SQL result mapping.
    Returns:
        ListingRecord: Domain listing record.
    Assumptions:
        `on_chain_id` is stored as NUMERIC and arrives as `Decimal`.
    Raises:
        ValueError: If row fields are missing or malformed.
    Side Effects:
        None.
    """
    try:
        on_chain_raw = row["on_chain_id"]
        return ListingRecord(
            temp_id=int(row["temp_id"]),
            metadata=ListingPublicMetadata(
                project_name=str(row["project_name"]),
                quantity=int(row["quantity"]),
                price_eth=str(row["price_eth"]),
                price_minor_units=int(row["price_minor_units"]),
                collateral_eth=str(row["collateral_eth"]),
                mint_date=int(row["mint_date"]),
            ),
            seller=EvmAddress(str(row["seller"])),
            created_at=row["created_at"],
            on_chain_id=int(on_chain_raw) if on_chain_raw is not None else None,
            tx_hash=row["tx_hash"],
            linked=bool(row["linked"]),
            id_source=row["id_source"],
            pending_tx_hash=row["pending_tx_hash"],
            linked_at=row["linked_at"],
        )
    except (KeyError, TypeError, ValueError) as error:
        raise ValueError("PostgresListingRecordRepository cannot map listing record row") from error
