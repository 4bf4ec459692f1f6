from __future__ import annotations

from typing import Protocol

from wlvault.contexts.sealing.domain.entities import LedgerListing


class LedgerReader(Protocol):
    """
    LedgerReader - read-only port over the escrow ledger contract listing storage.

    Related:
      - src/wlvault/contexts/sealing/application/use_cases/verify_buyer_authorization.py
      - src/wlvault/contexts/sealing/adapters/outbound/ledger/web3_ledger_reader.py
      - src/wlvault/contexts/sealing/adapters/outbound/ledger/in_memory_listing_ledger.py
    """

    def get_listing(self, *, listing_id: int) -> LedgerListing | None:
        """
        Read one listing by its on-chain id.

        Args:
            listing_id: On-chain listing id.
        Returns:
            LedgerListing | None: Listing snapshot or `None` when the id is unknown.
        Assumptions:
            Ledger reads have no side effects.
        Raises:
            Exception: Transport errors are propagated unchanged.
        Side Effects:
            One ledger read call.
        """
        ...
