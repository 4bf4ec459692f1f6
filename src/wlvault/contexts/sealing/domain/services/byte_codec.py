"""
Fixed-width big-endian codec between semantic secrets and encrypted slot bytes.

Related: wlvault.contexts.sealing.domain.value_objects.secret_field,
  wlvault.contexts.sealing.application.use_cases.build_encrypted_submission,
  wlvault.contexts.sealing.application.use_cases.reassemble_secrets
"""

from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation
from typing import Iterable

from wlvault.contexts.sealing.domain.errors import EncodingError
from wlvault.contexts.sealing.domain.value_objects import SecretEncoding, SecretFieldDescriptor
from wlvault.shared_kernel.primitives import EvmAddress

SecretValue = int | EvmAddress | bytes

_HEX_BODY_PATTERN = re.compile(r"^[0-9a-fA-F]*$")
_GWEI_PER_ETHER = Decimal(10) ** 9


def to_bytes(value: object, field: SecretFieldDescriptor) -> bytes:
    """
    Encode one semantic secret into exactly `field.byte_width` big-endian bytes.

    Args:
        value: `int` for integer fields; `EvmAddress`, `0x` hex string, or raw bytes otherwise.
    Returns:
        bytes: Encoded field bytes.
    Assumptions:
        Byte-oriented fields are never padded or truncated.
    Raises:
        EncodingError: If value type, sign, or length does not fit the field.
    Side Effects:
        None.
    """
    if field.encoding is SecretEncoding.INTEGER:
        return _integer_to_bytes(value=value, field=field)
    if field.encoding is SecretEncoding.ADDRESS and isinstance(value, EvmAddress):
        return value.to_bytes()
    raw = _coerce_raw_bytes(value=value, field=field)
    if len(raw) != field.byte_width:
        raise EncodingError(
            field_name=field.name,
            message=f"{field.name} must be exactly {field.byte_width} bytes, got {len(raw)}",
        )
    return raw


def from_bytes(data: bytes, field: SecretFieldDescriptor) -> SecretValue:
    """
    Decode field bytes back into the semantic value; exact inverse of `to_bytes`.

    Args:
        data: Exactly `field.byte_width` bytes.
        field: Target field descriptor.
    Returns:
        SecretValue: `int`, `EvmAddress`, or `bytes` depending on field encoding.
    Assumptions:
        `to_bytes(from_bytes(b, f), f) == b` for every valid `b`.
    Raises:
        EncodingError: If data length differs from the field width.
    Side Effects:
        None.
    """
    raw = bytes(data)
    if len(raw) != field.byte_width:
        raise EncodingError(
            field_name=field.name,
            message=f"{field.name} must be exactly {field.byte_width} bytes, got {len(raw)}",
        )
    if field.encoding is SecretEncoding.INTEGER:
        return int.from_bytes(raw, byteorder="big", signed=False)
    if field.encoding is SecretEncoding.ADDRESS:
        return EvmAddress.from_bytes(raw)
    return raw


def to_slot_values(data: bytes, field: SecretFieldDescriptor) -> tuple[int, ...]:
    """
    Split encoded field bytes into the plaintext values of its atomic encrypted slots.
    """
    if len(data) != field.byte_width:
        raise EncodingError(
            field_name=field.name,
            message=f"{field.name} must be exactly {field.byte_width} bytes, got {len(data)}",
        )
    if field.slot_bit_width == 64:
        return (int.from_bytes(data, byteorder="big", signed=False),)
    return tuple(data)


def hex_concat(byte_values: Iterable[int]) -> str:
    """
    Concatenate byte values as two lowercase hex digits each.

    Args:
        byte_values: Integers in `0..255`.
    Returns:
        str: Hex string without `0x` prefix, exactly two characters per byte.
    Assumptions:
        Values below 16 keep their leading zero so the string length never drifts.
    Raises:
        ValueError: If any value is outside the byte range.
    Side Effects:
        None.
    """
    parts: list[str] = []
    for value in byte_values:
        if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= 255:
            raise ValueError(f"byte value must be int in 0..255, got {value!r}")
        parts.append(f"{value:02x}")
    return "".join(parts)


def ether_to_minor_units(raw_value: str | int | Decimal, *, field_name: str = "price") -> int:
    """
    Convert an ether-denominated decimal amount into integer gwei.

    Args:
        raw_value: Decimal string such as `"0.5"`, an int, or a Decimal.
        field_name: Field label for error details.
    Returns:
        int: Amount in gwei (`"0.5"` -> `500_000_000`).
    Assumptions:
        Sub-gwei precision cannot be represented and is rejected, not rounded.
    Raises:
        EncodingError: If value is not numeric, negative, or has sub-gwei precision.
    Side Effects:
        None.
    """
    if isinstance(raw_value, bool) or isinstance(raw_value, float):
        raise EncodingError(
            field_name=field_name,
            message=f"{field_name} must be a decimal string or integer",
        )
    try:
        amount = Decimal(str(raw_value).strip())
    except InvalidOperation as error:
        raise EncodingError(
            field_name=field_name,
            message=f"{field_name} must be a decimal number",
        ) from error
    if not amount.is_finite():
        raise EncodingError(field_name=field_name, message=f"{field_name} must be finite")
    if amount < 0:
        raise EncodingError(field_name=field_name, message=f"{field_name} must be >= 0")
    minor_units = amount * _GWEI_PER_ETHER
    if minor_units != minor_units.to_integral_value():
        raise EncodingError(
            field_name=field_name,
            message=f"{field_name} has more precision than 1 gwei",
        )
    return int(minor_units)


def _integer_to_bytes(*, value: object, field: SecretFieldDescriptor) -> bytes:
    if isinstance(value, bool) or not isinstance(value, int):
        raise EncodingError(
            field_name=field.name,
            message=f"{field.name} must be an integer",
        )
    if value < 0:
        raise EncodingError(field_name=field.name, message=f"{field.name} must be >= 0")
    if value.bit_length() > field.byte_width * 8:
        raise EncodingError(
            field_name=field.name,
            message=f"{field.name} does not fit in {field.byte_width} bytes",
        )
    return value.to_bytes(field.byte_width, byteorder="big", signed=False)


def _coerce_raw_bytes(*, value: object, field: SecretFieldDescriptor) -> bytes:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped.startswith(("0x", "0X")):
            raise EncodingError(
                field_name=field.name,
                message=f"{field.name} must be 0x-prefixed hex",
            )
        body = stripped[2:]
        if len(body) % 2 != 0 or not _HEX_BODY_PATTERN.match(body):
            raise EncodingError(
                field_name=field.name,
                message=f"{field.name} must contain an even number of hex digits",
            )
        return bytes.fromhex(body)
    raise EncodingError(
        field_name=field.name,
        message=f"{field.name} must be hex string or bytes, got {type(value).__name__}",
    )
