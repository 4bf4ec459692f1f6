from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum

from wlvault.contexts.sealing.domain.value_objects import PRIVATE_KEY_FIELD, SELLER_WALLET_FIELD
from wlvault.shared_kernel.primitives import CiphertextHandle, EvmAddress


class LedgerListingStatus(IntEnum):
    ACTIVE = 0
    SOLD = 1
    COMPLETED = 2
    UNDER_REVIEW = 3
    DISPUTED = 4
    CANCELLED = 5


@dataclass(frozen=True, slots=True)
class LedgerListing:
    """
    LedgerListing - read model of one listing as recorded by the escrow ledger contract.

    Only the fields the sealing pipeline needs are kept; escrow rules stay on-chain.

    Related:
      - src/wlvault/contexts/sealing/application/ports/ledger_reader.py
      - src/wlvault/contexts/sealing/application/use_cases/verify_buyer_authorization.py
    """

    listing_id: int
    seller: EvmAddress
    buyer: EvmAddress
    wallet_handles: tuple[CiphertextHandle, ...]
    key_handles: tuple[CiphertextHandle, ...]
    status: LedgerListingStatus

    def __post_init__(self) -> None:
        object.__setattr__(self, "wallet_handles", tuple(self.wallet_handles))
        object.__setattr__(self, "key_handles", tuple(self.key_handles))
        if self.listing_id <= 0:
            raise ValueError(f"LedgerListing.listing_id must be > 0, got {self.listing_id}")
        if len(self.wallet_handles) != SELLER_WALLET_FIELD.slot_count:
            raise ValueError("LedgerListing.wallet_handles has unexpected length")
        if len(self.key_handles) != PRIVATE_KEY_FIELD.slot_count:
            raise ValueError("LedgerListing.key_handles has unexpected length")

    @property
    def has_buyer(self) -> bool:
        return not self.buyer.is_zero

    @property
    def secret_handles(self) -> tuple[CiphertextHandle, ...]:
        return (*self.wallet_handles, *self.key_handles)
