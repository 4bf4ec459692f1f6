from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class SecretEncoding(str, Enum):
    INTEGER = "integer"
    ADDRESS = "address"
    RAW_BYTES = "raw_bytes"


@dataclass(frozen=True, slots=True)
class SecretFieldDescriptor:
    """
    SecretFieldDescriptor - one fixed-width secret field of a listing and its slot shape.

    `slot_bit_width` is the encrypted type of each atomic slot: a 64-bit integer field takes
    one slot, byte-oriented fields take one 8-bit slot per byte.

    Related:
      - src/wlvault/contexts/sealing/domain/services/byte_codec.py
      - src/wlvault/contexts/sealing/application/use_cases/build_encrypted_submission.py
    """

    name: str
    byte_width: int
    encoding: SecretEncoding
    slot_bit_width: int

    def __post_init__(self) -> None:
        """
        Validate descriptor invariants.

        Args:
            None.
        Returns:
            None.
        Assumptions:
            Slot widths are limited to encrypted `uint8` and `uint64` types.
        Raises:
            ValueError: If name is blank, width is non-positive, or slot width is unsupported.
        Side Effects:
            None.
        """
        if not self.name.strip():
            raise ValueError("SecretFieldDescriptor.name must be non-empty")
        if self.byte_width <= 0:
            raise ValueError("SecretFieldDescriptor.byte_width must be > 0")
        if self.slot_bit_width not in (8, 64):
            raise ValueError("SecretFieldDescriptor.slot_bit_width must be 8 or 64")
        if self.slot_bit_width == 64 and self.byte_width != 8:
            raise ValueError("64-bit slot fields must be exactly 8 bytes wide")

    @property
    def slot_count(self) -> int:
        if self.slot_bit_width == 64:
            return 1
        return self.byte_width


PRICE_FIELD = SecretFieldDescriptor(
    name="price",
    byte_width=8,
    encoding=SecretEncoding.INTEGER,
    slot_bit_width=64,
)
SELLER_WALLET_FIELD = SecretFieldDescriptor(
    name="seller_wallet",
    byte_width=20,
    encoding=SecretEncoding.ADDRESS,
    slot_bit_width=8,
)
PRIVATE_KEY_FIELD = SecretFieldDescriptor(
    name="private_key",
    byte_width=32,
    encoding=SecretEncoding.RAW_BYTES,
    slot_bit_width=8,
)

# Order is the ledger contract's slot order; changing it corrupts stored listings.
LISTING_SECRET_LAYOUT: tuple[SecretFieldDescriptor, ...] = (
    PRICE_FIELD,
    SELLER_WALLET_FIELD,
    PRIVATE_KEY_FIELD,
)
TOTAL_SLOT_COUNT = sum(field.slot_count for field in LISTING_SECRET_LAYOUT)
