from .local_account_permission_signer import LocalAccountPermissionSigner
from .presented_signature_permission_signer import PresentedSignaturePermissionSigner
from .x25519_ephemeral_keypair_factory import (
    X25519EphemeralKeyPairFactory,
    open_sealed,
    public_key_for,
    seal_to_public_key,
)

__all__ = [
    "LocalAccountPermissionSigner",
    "PresentedSignaturePermissionSigner",
    "X25519EphemeralKeyPairFactory",
    "open_sealed",
    "public_key_for",
    "seal_to_public_key",
]
