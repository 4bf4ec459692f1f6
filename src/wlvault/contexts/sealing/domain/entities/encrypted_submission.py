from __future__ import annotations

from dataclasses import dataclass

from wlvault.contexts.sealing.domain.value_objects import (
    PRIVATE_KEY_FIELD,
    SELLER_WALLET_FIELD,
)
from wlvault.shared_kernel.primitives import CiphertextHandle

_SLOT_BIT_WIDTHS = (8, 64)


@dataclass(frozen=True, slots=True)
class PlaintextSlot:
    """
    PlaintextSlot - one atomic value handed to the encryption service.

    Related:
      - src/wlvault/contexts/sealing/application/ports/fhe_encryption_service.py
    """

    bit_width: int
    value: int

    def __post_init__(self) -> None:
        if self.bit_width not in _SLOT_BIT_WIDTHS:
            raise ValueError(f"PlaintextSlot.bit_width must be 8 or 64, got {self.bit_width}")
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise ValueError("PlaintextSlot.value must be int")
        if not 0 <= self.value < (1 << self.bit_width):
            raise ValueError(
                f"PlaintextSlot.value does not fit in uint{self.bit_width}: {self.value}"
            )


@dataclass(frozen=True, slots=True)
class EncryptedListingSubmission:
    """
    EncryptedListingSubmission - ciphertext handle set for one listing plus its batch proof.

    Handles keep the ledger slot order: price, seller wallet bytes, private key bytes.
    Transient: the caller forwards it to the ledger and nothing here stores it.

    Related:
      - src/wlvault/contexts/sealing/application/use_cases/build_encrypted_submission.py
      - apps/api/dto/listings.py
    """

    price_handle: CiphertextHandle
    wallet_handles: tuple[CiphertextHandle, ...]
    key_handles: tuple[CiphertextHandle, ...]
    proof: bytes

    def __post_init__(self) -> None:
        """
        Validate handle counts and proof presence.

        Args:
            None.
        Returns:
            None.
        Assumptions:
            Counts mirror `SELLER_WALLET_FIELD` and `PRIVATE_KEY_FIELD` slot counts.
        Raises:
            ValueError: If any group has the wrong size or proof is empty.
        Side Effects:
            Normalizes handle sequences to tuples.
        """
        object.__setattr__(self, "wallet_handles", tuple(self.wallet_handles))
        object.__setattr__(self, "key_handles", tuple(self.key_handles))
        if len(self.wallet_handles) != SELLER_WALLET_FIELD.slot_count:
            raise ValueError(
                f"wallet_handles must contain {SELLER_WALLET_FIELD.slot_count} handles, "
                f"got {len(self.wallet_handles)}"
            )
        if len(self.key_handles) != PRIVATE_KEY_FIELD.slot_count:
            raise ValueError(
                f"key_handles must contain {PRIVATE_KEY_FIELD.slot_count} handles, "
                f"got {len(self.key_handles)}"
            )
        if not self.proof:
            raise ValueError("EncryptedListingSubmission.proof must be non-empty")

    @property
    def all_handles(self) -> tuple[CiphertextHandle, ...]:
        return (self.price_handle, *self.wallet_handles, *self.key_handles)

    @property
    def handle_count(self) -> int:
        return len(self.all_handles)
