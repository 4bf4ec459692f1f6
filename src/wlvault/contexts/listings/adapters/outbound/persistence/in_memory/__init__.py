from .listing_record_repository import InMemoryListingRecordRepository

__all__ = ["InMemoryListingRecordRepository"]
