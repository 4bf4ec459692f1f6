from __future__ import annotations

import logging
from typing import Any, Mapping, Sequence

from eth_abi import decode
from eth_abi.exceptions import DecodingError
from eth_utils import keccak, to_bytes

from wlvault.contexts.listings.application.ports import ReceiptEventDecoder
from wlvault.contexts.listings.domain.value_objects import Found, ListingIdExtraction, NotFound
from wlvault.contexts.sealing.adapters.outbound.ledger.listing_ledger_abi import (
    LISTING_CREATED_DATA_TYPES,
    LISTING_CREATED_EVENT_SIGNATURE,
)
from wlvault.shared_kernel.primitives import EvmAddress

log = logging.getLogger(__name__)

LISTING_CREATED_TOPIC = keccak(text=LISTING_CREATED_EVENT_SIGNATURE)


class AbiListingCreatedDecoder(ReceiptEventDecoder):
    """
    AbiListingCreatedDecoder - find the ledger's `ListingCreated` log in a receipt and read the
    indexed listing id.

    Only logs emitted by the configured ledger contract with the event's topic0 are considered.
    A log whose topics or data cannot be decoded is skipped.

    Related:
      - src/wlvault/contexts/listings/application/ports/receipt_event_decoder.py
      - src/wlvault/contexts/sealing/adapters/outbound/ledger/listing_ledger_abi.py
    """

    def __init__(self, *, contract_address: EvmAddress) -> None:
        self._contract_address = contract_address

    def extract_listing_id(self, *, receipt: Mapping[str, Any]) -> ListingIdExtraction:
        """
        Return the id from the first decodable creation event of the ledger contract.

        Args:
            receipt: Web3-style receipt mapping.
        Returns:
            ListingIdExtraction: `Found` or `NotFound` with a short reason.
        Assumptions:
            Log fields may be hex strings or raw bytes.
        Raises:
            None.
        Side Effects:
            Logs skipped malformed logs at debug level.
        """
        logs = receipt.get("logs") if isinstance(receipt, Mapping) else None
        if not isinstance(logs, Sequence) or isinstance(logs, (str, bytes)) or not logs:
            return NotFound(reason="receipt has no logs")

        skipped = 0
        for position, entry in enumerate(logs):
            if not isinstance(entry, Mapping):
                skipped += 1
                continue
            if not self._is_ledger_log(entry=entry):
                continue
            try:
                topics = [_as_bytes(topic) for topic in entry.get("topics") or ()]
                if len(topics) < 2 or topics[0] != LISTING_CREATED_TOPIC:
                    continue
                decode(list(LISTING_CREATED_DATA_TYPES), _as_bytes(entry.get("data") or b""))
                listing_id = int.from_bytes(topics[1], byteorder="big", signed=False)
                raw_log_index = entry.get("logIndex")
                log_index = _as_int(raw_log_index) if raw_log_index is not None else position
            except (DecodingError, TypeError, ValueError) as error:
                skipped += 1
                log.debug("skipping undecodable ledger log position=%s error=%s", position, error)
                continue
            if listing_id <= 0:
                skipped += 1
                continue
            return Found(listing_id=listing_id, log_index=log_index)

        if skipped:
            return NotFound(reason=f"no decodable ListingCreated event ({skipped} logs skipped)")
        return NotFound(reason="no ListingCreated event from ledger contract")

    def _is_ledger_log(self, *, entry: Mapping[str, Any]) -> bool:
        raw_address = entry.get("address")
        if isinstance(raw_address, (bytes, bytearray)):
            raw_address = "0x" + bytes(raw_address).hex()
        if not isinstance(raw_address, str):
            return False
        return raw_address.lower() == self._contract_address.value


def _as_bytes(value: object) -> bytes:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    if isinstance(value, str):
        return to_bytes(hexstr=value)
    raise TypeError(f"expected hex string or bytes, got {type(value).__name__}")


def _as_int(value: object) -> int:
    if isinstance(value, bool):
        raise TypeError("logIndex must be int")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        return int(value, 16) if value.startswith("0x") else int(value)
    raise TypeError(f"logIndex must be int, got {type(value).__name__}")
