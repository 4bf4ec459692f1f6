from .gateway import ListingsPostgresGateway, PsycopgListingsPostgresGateway
from .listing_record_repository import PostgresListingRecordRepository

__all__ = [
    "ListingsPostgresGateway",
    "PostgresListingRecordRepository",
    "PsycopgListingsPostgresGateway",
]
