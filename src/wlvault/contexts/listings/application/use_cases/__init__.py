from .get_listing_record import GetListingRecordUseCase
from .link_listing_to_chain import LinkListingToChainUseCase, LinkResult
from .list_listing_records import ListListingRecordsUseCase
from .submit_listing_for_encryption import (
    EncryptionStats,
    ListingSubmissionResult,
    SubmitListingForEncryptionUseCase,
)

__all__ = [
    "EncryptionStats",
    "GetListingRecordUseCase",
    "LinkListingToChainUseCase",
    "LinkResult",
    "ListListingRecordsUseCase",
    "ListingSubmissionResult",
    "SubmitListingForEncryptionUseCase",
]
