from .chain import AbiListingCreatedDecoder
from .persistence.in_memory import InMemoryListingRecordRepository
from .persistence.postgres import (
    PostgresListingRecordRepository,
    PsycopgListingsPostgresGateway,
)

__all__ = [
    "AbiListingCreatedDecoder",
    "InMemoryListingRecordRepository",
    "PostgresListingRecordRepository",
    "PsycopgListingsPostgresGateway",
]
