from __future__ import annotations

from typing import Any, Mapping, Protocol

from wlvault.contexts.listings.domain.value_objects import ListingIdExtraction


class ReceiptEventDecoder(Protocol):
    """
    ReceiptEventDecoder - extracts the canonical listing id from a creation receipt.

    Related:
      - src/wlvault/contexts/listings/adapters/outbound/chain/abi_listing_created_decoder.py
      - src/wlvault/contexts/listings/application/use_cases/link_listing_to_chain.py
    """

    def extract_listing_id(self, *, receipt: Mapping[str, Any]) -> ListingIdExtraction:
        """
        Scan receipt logs for the ledger's creation event.

        Args:
            receipt: Web3-style receipt mapping with `logs`.
        Returns:
            ListingIdExtraction: `Found(listing_id, log_index)` or `NotFound(reason)`.
        Assumptions:
            Logs that fail to decode are skipped, never fatal.
        Raises:
            None.
        Side Effects:
            None.
        """
        ...
