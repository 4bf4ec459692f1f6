from __future__ import annotations

import logging
import re
import threading
from dataclasses import dataclass
from typing import Any, Mapping

from wlvault.contexts.listings.application.ports import (
    ListingRecordRepository,
    ListingsClock,
    ReceiptEventDecoder,
)
from wlvault.contexts.listings.domain.entities import IdSource, ListingRecord
from wlvault.contexts.listings.domain.errors import (
    ListingRecordNotFoundError,
    ListingValidationError,
    ReconciliationFallbackWarning,
    ReconciliationUnresolvedError,
)
from wlvault.contexts.listings.domain.value_objects import Found

log = logging.getLogger(__name__)

_TX_HASH_PATTERN = re.compile(r"^0x[0-9a-fA-F]{64}$")
_LOCK_STRIPES = 64


@dataclass(frozen=True, slots=True)
class LinkResult:
    """
    LinkResult - outcome of one link call.

    `already_linked` is true when the record was linked before this call (idempotent replay);
    `warning` is set when the fallback id was used.
    """

    record: ListingRecord
    already_linked: bool
    warning: ReconciliationFallbackWarning | None = None


class LinkListingToChainUseCase:
    """
    LinkListingToChainUseCase - reconcile a temporary listing record with the on-chain id
    assigned by the ledger at creation.

    Related:
      - src/wlvault/contexts/listings/application/ports/receipt_event_decoder.py
      - src/wlvault/contexts/listings/adapters/outbound/chain/abi_listing_created_decoder.py
      - apps/api/routes/listings.py
    """

    def __init__(
        self,
        *,
        repository: ListingRecordRepository,
        decoder: ReceiptEventDecoder,
        clock: ListingsClock,
    ) -> None:
        if repository is None:  # type: ignore[truthy-bool]
            raise ValueError("LinkListingToChainUseCase requires repository")
        if decoder is None:  # type: ignore[truthy-bool]
            raise ValueError("LinkListingToChainUseCase requires decoder")
        if clock is None:  # type: ignore[truthy-bool]
            raise ValueError("LinkListingToChainUseCase requires clock")
        self._repository = repository
        self._decoder = decoder
        self._clock = clock
        # Fixed stripes keyed by temp id; unrelated ids may share a stripe.
        self._locks = tuple(threading.Lock() for _ in range(_LOCK_STRIPES))

    def link(
        self,
        *,
        temp_id: int,
        receipt: Mapping[str, Any],
        fallback_listing_id: int | None = None,
    ) -> LinkResult:
        """
        Link a record to its canonical on-chain id decoded from the creation receipt.

        Args:
            temp_id: Temporary record id returned at submission.
            receipt: Creation transaction receipt (`transactionHash`, `status`, `logs`).
            fallback_listing_id: Caller-known id, used only when the receipt has no event.
        Returns:
            LinkResult: Linked record and idempotency / fallback flags.
        Assumptions:
            The event-decoded id always wins over the fallback id.
        Raises:
            ListingRecordNotFoundError: If `temp_id` is unknown.
            ListingValidationError: If the receipt is malformed or the transaction reverted.
            ReconciliationUnresolvedError: If no id can be determined; tx hash is remembered.
            ListingAlreadyLinkedError: If the on-chain id belongs to another record.
        Side Effects:
            At most one record write per call; calls for one temp id are serialized.
        """
        with self._lock_for(temp_id=temp_id):
            record = self._repository.get(temp_id=temp_id)
            if record is None:
                raise ListingRecordNotFoundError(listing_id=temp_id)
            if record.linked:
                log.info(
                    "listing already linked temp_id=%s on_chain_id=%s",
                    temp_id,
                    record.on_chain_id,
                )
                return LinkResult(record=record, already_linked=True)

            tx_hash = _receipt_tx_hash(receipt=receipt)
            if receipt.get("status") in (0, "0x0"):
                raise ListingValidationError(
                    field_name="receipt",
                    message="listing creation transaction reverted",
                )

            extraction = self._decoder.extract_listing_id(receipt=receipt)
            warning: ReconciliationFallbackWarning | None = None
            id_source: IdSource
            if isinstance(extraction, Found):
                on_chain_id = extraction.listing_id
                id_source = "event"
            elif fallback_listing_id is not None:
                if isinstance(fallback_listing_id, bool) or fallback_listing_id <= 0:
                    raise ListingValidationError(
                        field_name="fallback_listing_id",
                        message="fallback_listing_id must be > 0",
                    )
                on_chain_id = fallback_listing_id
                id_source = "fallback"
                warning = ReconciliationFallbackWarning(
                    temp_id=temp_id,
                    fallback_listing_id=fallback_listing_id,
                    reason=extraction.reason,
                )
                log.warning("%s", warning)
            else:
                if tx_hash is not None:
                    self._repository.remember_pending_tx(temp_id=temp_id, tx_hash=tx_hash)
                log.warning(
                    "listing link unresolved temp_id=%s tx_hash=%s reason=%s",
                    temp_id,
                    tx_hash,
                    extraction.reason,
                )
                raise ReconciliationUnresolvedError(
                    temp_id=temp_id,
                    tx_hash=tx_hash,
                    reason=extraction.reason,
                )

            linked, applied = self._repository.link_if_unlinked(
                temp_id=temp_id,
                on_chain_id=on_chain_id,
                tx_hash=tx_hash,
                id_source=id_source,
                linked_at=self._clock.now(),
            )
            if applied:
                log.info(
                    "listing linked temp_id=%s on_chain_id=%s source=%s",
                    temp_id,
                    on_chain_id,
                    id_source,
                )
            return LinkResult(record=linked, already_linked=not applied, warning=warning)

    def _lock_for(self, *, temp_id: int) -> threading.Lock:
        return self._locks[hash(temp_id) % _LOCK_STRIPES]


def _receipt_tx_hash(*, receipt: Mapping[str, Any]) -> str | None:
    if not isinstance(receipt, Mapping):
        raise ListingValidationError(field_name="receipt", message="receipt must be an object")
    raw = receipt.get("transactionHash")
    if raw is None:
        return None
    if isinstance(raw, (bytes, bytearray)):
        raw = "0x" + bytes(raw).hex()
    if not isinstance(raw, str) or not _TX_HASH_PATTERN.match(raw):
        raise ListingValidationError(
            field_name="receipt.transactionHash",
            message="transactionHash must be 0x-prefixed 32-byte hex",
        )
    return raw.lower()
