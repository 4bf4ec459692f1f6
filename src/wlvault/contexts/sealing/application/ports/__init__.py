from .clock import SealingClock
from .ephemeral_key_pair_factory import EphemeralKeyPairFactory
from .fhe_decryption_service import FheDecryptionService, HandleContractPair
from .fhe_encryption_service import EncryptionResult, FheEncryptionService
from .ledger_reader import LedgerReader
from .permission_signer import PermissionSigner, PermissionSigningDeclined

__all__ = [
    "EncryptionResult",
    "EphemeralKeyPairFactory",
    "FheDecryptionService",
    "FheEncryptionService",
    "HandleContractPair",
    "LedgerReader",
    "PermissionSigner",
    "PermissionSigningDeclined",
    "SealingClock",
]
