from __future__ import annotations

import re
from dataclasses import dataclass

_HANDLE_BYTE_LENGTH = 32
_HANDLE_HEX_PATTERN = re.compile(r"^0x[0-9a-fA-F]{64}$")


@dataclass(frozen=True, slots=True)
class CiphertextHandle:
    """
    CiphertextHandle - opaque 32-byte reference to one encrypted value.

    Handles are meaningful only to the encryption/decryption service and the ledger contract;
    this core compares and forwards them but never interprets their bytes.

    Related:
      - src/wlvault/contexts/sealing/adapters/outbound/fhe/wire_normalization.py
      - src/wlvault/contexts/sealing/domain/entities/encrypted_submission.py
    """

    value: bytes

    def __post_init__(self) -> None:
        if not isinstance(self.value, (bytes, bytearray)):
            raise ValueError(
                f"CiphertextHandle requires bytes value, got {type(self.value).__name__}"
            )
        if len(self.value) != _HANDLE_BYTE_LENGTH:
            raise ValueError(
                f"CiphertextHandle must be {_HANDLE_BYTE_LENGTH} bytes, got {len(self.value)}"
            )
        object.__setattr__(self, "value", bytes(self.value))

    @classmethod
    def from_hex(cls, raw_value: str) -> CiphertextHandle:
        """
        Parse handle from canonical `0x` + 64 hex string.

        Args:
            raw_value: Raw handle string.
        Returns:
            CiphertextHandle: Parsed handle.
        Assumptions:
            Hex digits may use any casing.
        Raises:
            ValueError: If string is not `0x` + 64 hex characters.
        Side Effects:
            None.
        """
        stripped = raw_value.strip()
        if not _HANDLE_HEX_PATTERN.match(stripped):
            raise ValueError(f"CiphertextHandle must be 0x-prefixed 32-byte hex, got {raw_value!r}")
        return cls(bytes.fromhex(stripped[2:]))

    @property
    def hex(self) -> str:
        return "0x" + self.value.hex()

    def __str__(self) -> str:
        return self.hex
