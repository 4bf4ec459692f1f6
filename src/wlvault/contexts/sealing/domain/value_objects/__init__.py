from .secret_field import (
    LISTING_SECRET_LAYOUT,
    PRICE_FIELD,
    PRIVATE_KEY_FIELD,
    SELLER_WALLET_FIELD,
    TOTAL_SLOT_COUNT,
    SecretEncoding,
    SecretFieldDescriptor,
)

__all__ = [
    "LISTING_SECRET_LAYOUT",
    "PRICE_FIELD",
    "PRIVATE_KEY_FIELD",
    "SELLER_WALLET_FIELD",
    "TOTAL_SLOT_COUNT",
    "SecretEncoding",
    "SecretFieldDescriptor",
]
