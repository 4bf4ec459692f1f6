from __future__ import annotations

from datetime import datetime
from typing import Protocol

from wlvault.contexts.listings.domain.entities import IdSource, ListingRecord


class ListingRecordRepository(Protocol):
    """
    ListingRecordRepository - key-value store of off-chain listing records.

    Per-record writes are atomic; `link_if_unlinked` is a compare-and-set on the linked flag.

    Related:
      - src/wlvault/contexts/listings/adapters/outbound/persistence/in_memory/
        listing_record_repository.py
      - src/wlvault/contexts/listings/adapters/outbound/persistence/postgres/
        listing_record_repository.py
    """

    def allocate_temp_id(self) -> int:
        """
        Allocate the next sequential temporary id (first id is 1).
        """
        ...

    def put(self, *, record: ListingRecord) -> ListingRecord:
        ...

    def get(self, *, temp_id: int) -> ListingRecord | None:
        ...

    def get_by_on_chain_id(self, *, on_chain_id: int) -> ListingRecord | None:
        ...

    def list(self) -> tuple[ListingRecord, ...]:
        """
        Return all records ordered by temporary id.
        """
        ...

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
        Link the record only if it is still unlinked.

        Args:
            temp_id: Temporary record id.
            on_chain_id: Canonical ledger listing id.
            tx_hash: Creation transaction hash.
            id_source: Origin of the on-chain id.
            linked_at: UTC link timestamp.
        Returns:
            tuple[ListingRecord, bool]: Current record and whether this call applied the link.
        Assumptions:
            Record exists.
        Raises:
            ListingRecordNotFoundError: If the record does not exist.
            ListingAlreadyLinkedError: If another record already holds `on_chain_id`.
        Side Effects:
            Writes the record when the link is applied.
        """
        ...

    def remember_pending_tx(self, *, temp_id: int, tx_hash: str) -> ListingRecord:
        ...
