from .listings_errors import (
    ListingAlreadyLinkedError,
    ListingRecordNotFoundError,
    ListingsOperationError,
    ListingValidationError,
    ReconciliationFallbackWarning,
    ReconciliationUnresolvedError,
)

__all__ = [
    "ListingAlreadyLinkedError",
    "ListingRecordNotFoundError",
    "ListingValidationError",
    "ListingsOperationError",
    "ReconciliationFallbackWarning",
    "ReconciliationUnresolvedError",
]
