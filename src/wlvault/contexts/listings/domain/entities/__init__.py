from .listing_record import IdSource, ListingPublicMetadata, ListingRecord

__all__ = ["IdSource", "ListingPublicMetadata", "ListingRecord"]
