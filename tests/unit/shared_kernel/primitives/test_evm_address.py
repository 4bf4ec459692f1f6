from __future__ import annotations

import pytest

from wlvault.shared_kernel.primitives import EvmAddress

_CHECKSUM = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"


def test_evm_address_equality_ignores_checksum_casing() -> None:
    """
    Verify mixed-case and lowercase renderings of one address are equal and hash equally.

    Args:
        None.
    Returns:
        None.
    Assumptions:
        Address identity is case-insensitive.
    Raises:
        AssertionError: If casing leaks into equality or hashing.
    Side Effects:
        None.
    """
    mixed = EvmAddress(_CHECKSUM)
    lower = EvmAddress(_CHECKSUM.lower())

    assert mixed == lower
    assert hash(mixed) == hash(lower)
    assert mixed.value == _CHECKSUM.lower()
    assert mixed.checksum == _CHECKSUM
    assert str(lower) == _CHECKSUM


def test_evm_address_bytes_round_trip_keeps_leading_zero_bytes() -> None:
    raw = bytes([0x00, 0x0A] + [0x10] * 18)

    address = EvmAddress.from_bytes(raw)

    assert address.value.startswith("0x000a")
    assert address.to_bytes() == raw


@pytest.mark.parametrize(
    "raw_value",
    [
        "f39Fd6e51aad88F6F4ce6aB8827279cffFb92266",
        "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb9226",
        "0xg39Fd6e51aad88F6F4ce6aB8827279cffFb92266",
        "",
    ],
)
def test_evm_address_rejects_malformed_values(raw_value: str) -> None:
    """
    Verify malformed address strings fail fast with ValueError.

    Args:
        raw_value: Malformed address candidate.
    Returns:
        None.
    Assumptions:
        Only `0x` + 40 hex characters are accepted.
    Raises:
        AssertionError: If malformed value is accepted.
    Side Effects:
        None.
    """
    with pytest.raises(ValueError, match="EvmAddress must be 0x-prefixed 20-byte hex"):
        EvmAddress(raw_value)


def test_evm_address_zero_is_recognized() -> None:
    assert EvmAddress.zero().is_zero
    assert not EvmAddress(_CHECKSUM).is_zero
