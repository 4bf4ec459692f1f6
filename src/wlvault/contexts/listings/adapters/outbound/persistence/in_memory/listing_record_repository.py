from __future__ import annotations

import threading
from datetime import datetime

from wlvault.contexts.listings.application.ports import ListingRecordRepository
from wlvault.contexts.listings.domain.entities import IdSource, ListingRecord
from wlvault.contexts.listings.domain.errors import (
    ListingAlreadyLinkedError,
    ListingRecordNotFoundError,
)


class InMemoryListingRecordRepository(ListingRecordRepository):
    """
    InMemoryListingRecordRepository - process-local listing record storage for dev and tests.

    Related:
      - src/wlvault/contexts/listings/application/ports/listing_record_repository.py
      - src/wlvault/contexts/listings/adapters/outbound/persistence/postgres/
        listing_record_repository.py
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._next_temp_id = 1
        self._rows: dict[int, ListingRecord] = {}

    def allocate_temp_id(self) -> int:
        with self._lock:
            temp_id = self._next_temp_id
            self._next_temp_id += 1
            return temp_id

    def put(self, *, record: ListingRecord) -> ListingRecord:
        with self._lock:
            if record.on_chain_id is not None:
                self._ensure_on_chain_id_free(
                    temp_id=record.temp_id,
                    on_chain_id=record.on_chain_id,
                )
            self._rows[record.temp_id] = record
            return record

    def get(self, *, temp_id: int) -> ListingRecord | None:
        with self._lock:
            return self._rows.get(temp_id)

    def get_by_on_chain_id(self, *, on_chain_id: int) -> ListingRecord | None:
        with self._lock:
            for record in self._rows.values():
                if record.on_chain_id == on_chain_id:
                    return record
            return None

    def list(self) -> tuple[ListingRecord, ...]:
        with self._lock:
            return tuple(self._rows[temp_id] for temp_id in sorted(self._rows))

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
        Compare-and-set link under the repository lock.

        Args:
            temp_id: Temporary record id.
            on_chain_id: Canonical ledger listing id.
            tx_hash: Creation transaction hash.
            id_source: Origin of the on-chain id.
            linked_at: UTC link timestamp.
        Returns:
            tuple[ListingRecord, bool]: Current record and whether the link was applied.
        Assumptions:
            None.
        Raises:
            ListingRecordNotFoundError: If the record does not exist.
            ListingAlreadyLinkedError: If another record already holds `on_chain_id`.
        Side Effects:
            Replaces the stored record when applied.
        """
        with self._lock:
            current = self._rows.get(temp_id)
            if current is None:
                raise ListingRecordNotFoundError(listing_id=temp_id)
            if current.linked:
                return current, False
            self._ensure_on_chain_id_free(temp_id=temp_id, on_chain_id=on_chain_id)
            linked = current.link(
                on_chain_id=on_chain_id,
                tx_hash=tx_hash,
                id_source=id_source,
                linked_at=linked_at,
            )
            self._rows[temp_id] = linked
            return linked, True

    def remember_pending_tx(self, *, temp_id: int, tx_hash: str) -> ListingRecord:
        with self._lock:
            current = self._rows.get(temp_id)
            if current is None:
                raise ListingRecordNotFoundError(listing_id=temp_id)
            updated = current.with_pending_tx(tx_hash=tx_hash)
            self._rows[temp_id] = updated
            return updated

    def _ensure_on_chain_id_free(self, *, temp_id: int, on_chain_id: int) -> None:
        for other in self._rows.values():
            if other.temp_id != temp_id and other.on_chain_id == on_chain_id:
                raise ListingAlreadyLinkedError(temp_id=temp_id, on_chain_id=on_chain_id)
