from __future__ import annotations

import re
from dataclasses import dataclass
from typing import ClassVar

from eth_utils import to_checksum_address

_ADDRESS_PATTERN = re.compile(r"^0x[0-9a-f]{40}$")
_ADDRESS_BYTE_LENGTH = 20


@dataclass(frozen=True, slots=True)
class EvmAddress:
    """
    EvmAddress - 20-byte account/contract address with case-insensitive identity.

    The wrapped value is stored lowercase, so `==` and hashing ignore EIP-55 checksum casing.

    Related:
      - src/wlvault/contexts/sealing/domain/services/byte_codec.py
      - src/wlvault/contexts/sealing/application/use_cases/verify_buyer_authorization.py
      - src/wlvault/contexts/listings/domain/entities/listing_record.py
    """

    value: str

    ZERO_HEX: ClassVar[str] = "0x" + "00" * _ADDRESS_BYTE_LENGTH

    def __post_init__(self) -> None:
        """
        Normalize address to lowercase and validate `0x` + 40 hex shape.

        Args:
            None.
        Returns:
            None.
        Assumptions:
            Checksum casing is not validated; only shape is enforced.
        Raises:
            ValueError: If value is not a string of `0x` + 40 hex characters.
        Side Effects:
            Replaces frozen slot `value` with lowercase form.
        """
        if not isinstance(self.value, str):
            raise ValueError(f"EvmAddress requires str value, got {type(self.value).__name__}")
        normalized = self.value.strip().lower()
        if not _ADDRESS_PATTERN.match(normalized):
            raise ValueError(f"EvmAddress must be 0x-prefixed 20-byte hex, got {self.value!r}")
        object.__setattr__(self, "value", normalized)

    @classmethod
    def from_bytes(cls, raw: bytes) -> EvmAddress:
        if len(raw) != _ADDRESS_BYTE_LENGTH:
            raise ValueError(
                f"EvmAddress.from_bytes requires {_ADDRESS_BYTE_LENGTH} bytes, got {len(raw)}"
            )
        return cls("0x" + bytes(raw).hex())

    @classmethod
    def zero(cls) -> EvmAddress:
        return cls(cls.ZERO_HEX)

    def to_bytes(self) -> bytes:
        return bytes.fromhex(self.value[2:])

    @property
    def is_zero(self) -> bool:
        return self.value == self.ZERO_HEX

    @property
    def checksum(self) -> str:
        """
        EIP-55 mixed-case rendering used in API payloads and signed messages.
        """
        return str(to_checksum_address(self.value))

    def __str__(self) -> str:
        return self.checksum
