from .decryption_permission import (
    SECONDS_PER_DAY,
    DecryptionPermission,
    DecryptionRequest,
    DecryptionRequestState,
    EphemeralKeyPair,
    PermissionDomain,
)
from .encrypted_submission import EncryptedListingSubmission, PlaintextSlot
from .ledger_listing import LedgerListing, LedgerListingStatus
from .purchased_secrets import PurchasedSecrets

__all__ = [
    "SECONDS_PER_DAY",
    "DecryptionPermission",
    "DecryptionRequest",
    "DecryptionRequestState",
    "EncryptedListingSubmission",
    "EphemeralKeyPair",
    "LedgerListing",
    "LedgerListingStatus",
    "PermissionDomain",
    "PlaintextSlot",
    "PurchasedSecrets",
]
