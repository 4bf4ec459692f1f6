from .clock import ListingsClock
from .listing_record_repository import ListingRecordRepository
from .listing_sealer import ListingSealer
from .receipt_event_decoder import ReceiptEventDecoder

__all__ = [
    "ListingRecordRepository",
    "ListingSealer",
    "ListingsClock",
    "ReceiptEventDecoder",
]
