from __future__ import annotations

import os
import struct

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric.x25519 import X25519PrivateKey, X25519PublicKey
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.hkdf import HKDF
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat

from wlvault.contexts.sealing.application.ports import EphemeralKeyPairFactory
from wlvault.contexts.sealing.domain.entities import EphemeralKeyPair

_KEY_LENGTH = 32
_NONCE_LENGTH = 12
_SEALED_VERSION_V1 = 1
_HEADER_STRUCT = struct.Struct(">B")
_HKDF_INFO = b"wlvault.sealing.user-decrypt.v1"


class X25519EphemeralKeyPairFactory(EphemeralKeyPairFactory):
    """
    X25519EphemeralKeyPairFactory - fresh X25519 key pair per decryption permission.

    Related:
      - src/wlvault/contexts/sealing/application/ports/ephemeral_key_pair_factory.py
      - apps/api/wiring/modules/sealing.py
    """

    def generate(self) -> EphemeralKeyPair:
        private_key = X25519PrivateKey.generate()
        return EphemeralKeyPair(
            public_key=private_key.public_key().public_bytes(Encoding.Raw, PublicFormat.Raw),
            private_key=private_key.private_bytes_raw(),
        )


def public_key_for(*, private_key: bytes) -> bytes:
    """
    Derive the raw X25519 public key for a raw private key.

    Raises:
        ValueError: If the private key is not 32 bytes.
    """
    if len(private_key) != _KEY_LENGTH:
        raise ValueError("X25519 private key must be 32 bytes")
    return (
        X25519PrivateKey.from_private_bytes(private_key)
        .public_key()
        .public_bytes(Encoding.Raw, PublicFormat.Raw)
    )


def seal_to_public_key(*, public_key: bytes, plaintext: bytes) -> bytes:
    """
    Seal bytes to a recipient X25519 public key (ephemeral-static ECDH, HKDF-SHA256, AES-GCM).

    Args:
        public_key: Recipient raw X25519 public key.
        plaintext: Bytes to seal.
    Returns:
        bytes: `version || sender_public_key || nonce || ciphertext`.
    Assumptions:
        A new sender key and nonce are drawn for every call.
    Raises:
        ValueError: If the recipient key is not 32 bytes.
    Side Effects:
        Uses OS CSPRNG.
    """
    if len(public_key) != _KEY_LENGTH:
        raise ValueError("X25519 public key must be 32 bytes")
    sender = X25519PrivateKey.generate()
    sender_public = sender.public_key().public_bytes(Encoding.Raw, PublicFormat.Raw)
    key = _derive_key(
        shared=sender.exchange(X25519PublicKey.from_public_bytes(public_key)),
        sender_public=sender_public,
        recipient_public=public_key,
    )
    nonce = os.urandom(_NONCE_LENGTH)
    ciphertext = AESGCM(key).encrypt(nonce, plaintext, _HKDF_INFO)
    return b"".join((_HEADER_STRUCT.pack(_SEALED_VERSION_V1), sender_public, nonce, ciphertext))


def open_sealed(*, private_key: bytes, sealed: bytes) -> bytes:
    """
    Open a blob produced by `seal_to_public_key`.

    Args:
        private_key: Recipient raw X25519 private key.
        sealed: Sealed blob.
    Returns:
        bytes: Plaintext.
    Assumptions:
        Blob layout is versioned by its first byte.
    Raises:
        ValueError: If the blob is truncated, has an unknown version, or fails authentication.
    Side Effects:
        None.
    """
    blob = bytes(sealed)
    minimum = _HEADER_STRUCT.size + _KEY_LENGTH + _NONCE_LENGTH + 16
    if len(blob) < minimum:
        raise ValueError("sealed value is truncated")
    (version,) = _HEADER_STRUCT.unpack_from(blob)
    if version != _SEALED_VERSION_V1:
        raise ValueError("unsupported sealed value version")
    offset = _HEADER_STRUCT.size
    sender_public = blob[offset : offset + _KEY_LENGTH]
    offset += _KEY_LENGTH
    nonce = blob[offset : offset + _NONCE_LENGTH]
    ciphertext = blob[offset + _NONCE_LENGTH :]

    recipient = X25519PrivateKey.from_private_bytes(private_key)
    recipient_public = recipient.public_key().public_bytes(Encoding.Raw, PublicFormat.Raw)
    key = _derive_key(
        shared=recipient.exchange(X25519PublicKey.from_public_bytes(sender_public)),
        sender_public=sender_public,
        recipient_public=recipient_public,
    )
    try:
        return AESGCM(key).decrypt(nonce, ciphertext, _HKDF_INFO)
    except InvalidTag as error:
        raise ValueError("sealed value authentication failed") from error


def _derive_key(*, shared: bytes, sender_public: bytes, recipient_public: bytes) -> bytes:
    return HKDF(
        algorithm=hashes.SHA256(),
        length=_KEY_LENGTH,
        salt=sender_public + recipient_public,
        info=_HKDF_INFO,
    ).derive(shared)
