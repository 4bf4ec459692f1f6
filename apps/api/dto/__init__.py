from .listings import (
    DecryptionChallengeResponse,
    DecryptionRequestCreateRequest,
    DecryptionSignatureRequest,
    EncryptListingRequest,
    EncryptListingResponse,
    LinkListingRequest,
    LinkListingResponse,
    ListingRecordResponse,
    PurchasedSecretsResponse,
    to_decryption_challenge_response,
    to_encrypt_listing_response,
    to_link_listing_response,
    to_listing_record_response,
    to_purchased_secrets_response,
)

__all__ = [
    "DecryptionChallengeResponse",
    "DecryptionRequestCreateRequest",
    "DecryptionSignatureRequest",
    "EncryptListingRequest",
    "EncryptListingResponse",
    "LinkListingRequest",
    "LinkListingResponse",
    "ListingRecordResponse",
    "PurchasedSecretsResponse",
    "to_decryption_challenge_response",
    "to_encrypt_listing_response",
    "to_link_listing_response",
    "to_listing_record_response",
    "to_purchased_secrets_response",
]
