from .fhe import HttpFheGatewayClient, HttpFheGatewayConfig, InMemoryFheGateway
from .ledger import InMemoryListingLedger, Web3LedgerReader
from .security import (
    LocalAccountPermissionSigner,
    PresentedSignaturePermissionSigner,
    X25519EphemeralKeyPairFactory,
)

__all__ = [
    "HttpFheGatewayClient",
    "HttpFheGatewayConfig",
    "InMemoryFheGateway",
    "InMemoryListingLedger",
    "LocalAccountPermissionSigner",
    "PresentedSignaturePermissionSigner",
    "Web3LedgerReader",
    "X25519EphemeralKeyPairFactory",
]
