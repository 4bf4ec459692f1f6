from .sealing_errors import (
    DecryptionRequestNotFoundError,
    DecryptionRequestTransitionError,
    DecryptionServiceError,
    EncodingError,
    EncryptionServiceError,
    LedgerReadError,
    ListingNotFoundError,
    NotPurchasedError,
    PermissionDeniedError,
    ReassemblyError,
    SealingOperationError,
    UnauthorizedError,
    ValidationError,
)

__all__ = [
    "DecryptionRequestNotFoundError",
    "DecryptionRequestTransitionError",
    "DecryptionServiceError",
    "EncodingError",
    "EncryptionServiceError",
    "LedgerReadError",
    "ListingNotFoundError",
    "NotPurchasedError",
    "PermissionDeniedError",
    "ReassemblyError",
    "SealingOperationError",
    "UnauthorizedError",
    "ValidationError",
]
