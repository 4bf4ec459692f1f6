from __future__ import annotations

import pytest

from wlvault.contexts.sealing.adapters.outbound.security import (
    X25519EphemeralKeyPairFactory,
    open_sealed,
    public_key_for,
    seal_to_public_key,
)


def test_generated_key_pairs_are_fresh_and_consistent() -> None:
    factory = X25519EphemeralKeyPairFactory()

    first = factory.generate()
    second = factory.generate()

    assert first.public_key != second.public_key
    assert public_key_for(private_key=first.private_key) == first.public_key
    assert len(first.public_key) == 32


def test_sealed_value_opens_only_with_recipient_key() -> None:
    """
    Verify sealed values open with the recipient private key and fail with any other key.

    Args:
        None.
    Returns:
        None.
    Assumptions:
        Blob is authenticated, so a wrong key cannot yield garbage plaintext.
    Raises:
        AssertionError: If sealing round trip or authentication is broken.
    Side Effects:
        Uses OS CSPRNG.
    """
    factory = X25519EphemeralKeyPairFactory()
    recipient = factory.generate()
    stranger = factory.generate()

    sealed = seal_to_public_key(public_key=recipient.public_key, plaintext=b"\x00\x2a")

    assert open_sealed(private_key=recipient.private_key, sealed=sealed) == b"\x00\x2a"
    with pytest.raises(ValueError, match="authentication failed"):
        open_sealed(private_key=stranger.private_key, sealed=sealed)


def test_open_sealed_rejects_truncated_and_unknown_version_blobs() -> None:
    recipient = X25519EphemeralKeyPairFactory().generate()
    sealed = seal_to_public_key(public_key=recipient.public_key, plaintext=b"\x01")

    with pytest.raises(ValueError, match="truncated"):
        open_sealed(private_key=recipient.private_key, sealed=sealed[:20])
    with pytest.raises(ValueError, match="unsupported sealed value version"):
        open_sealed(private_key=recipient.private_key, sealed=b"\x09" + sealed[1:])
