from .listing_id_extraction import Found, ListingIdExtraction, NotFound

__all__ = ["Found", "ListingIdExtraction", "NotFound"]
