from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Sequence


@dataclass(frozen=True, slots=True)
class MarketError(Exception):
    """
    MarketError - error contract shared by the HTTP surface and both bounded contexts.

    `code` is a stable token the API maps to an HTTP status; `details` is frozen into a
    JSON-safe, key-sorted payload at construction so two equal errors render identically.

    Related:
      - apps/api/common/errors.py
      - src/wlvault/contexts/sealing/domain/errors/sealing_errors.py
      - src/wlvault/contexts/listings/domain/errors/listings_errors.py
    """

    code: str
    message: str
    details: Mapping[str, Any] | None = None

    def __post_init__(self) -> None:
        """
        Strip code and message, reject blanks, and normalize details.

        Args:
            None.
        Returns:
            None.
        Assumptions:
            Details never carry secret plaintext; callers pass ids, fields, and reasons.
        Raises:
            ValueError: If `code` or `message` is blank.
            TypeError: If `details` is provided but is not a mapping.
        Side Effects:
            Replaces `details` with its normalized copy.
        """
        for name in ("code", "message"):
            stripped = getattr(self, name).strip()
            if not stripped:
                raise ValueError(f"MarketError.{name} must be non-empty")
            object.__setattr__(self, name, stripped)

        if self.details is None:
            return
        if not isinstance(self.details, Mapping):
            raise TypeError("MarketError.details must be a mapping when provided")
        object.__setattr__(self, "details", normalize_payload_value(value=self.details))

    def to_payload(self) -> dict[str, Any]:
        """
        Render the `{"error": {"code", "message", "details"}}` response body.
        """
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "details": dict(self.details or {}),
            }
        }


def normalize_payload_value(*, value: Any) -> Any:
    """
    Convert a details value into plain JSON types with deterministic key order.

    Args:
        value: Arbitrary details value.
    Returns:
        Any: Dict with sorted string keys, list, JSON scalar, or string.
    Assumptions:
        Byte strings are chain data (handles, hashes) and render as `0x` hex; enums render
        as their value; anything else falls back to `str`.
    Raises:
        None.
    Side Effects:
        None.
    """
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, Enum):
        return normalize_payload_value(value=value.value)
    if isinstance(value, (bytes, bytearray, memoryview)):
        return "0x" + bytes(value).hex()
    if isinstance(value, Mapping):
        return {
            str(key): normalize_payload_value(value=item)
            for key, item in sorted(value.items(), key=lambda pair: str(pair[0]))
        }
    if isinstance(value, Sequence):
        return [normalize_payload_value(value=item) for item in value]
    return str(value)
