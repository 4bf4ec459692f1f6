from .in_memory_listing_ledger import InMemoryListingLedger
from .listing_ledger_abi import (
    GET_LISTING_FIELDS,
    LEDGER_READ_ABI,
    LISTING_CREATED_DATA_TYPES,
    LISTING_CREATED_EVENT_SIGNATURE,
)
from .web3_ledger_reader import Web3LedgerReader, ledger_listing_from_call_result

__all__ = [
    "GET_LISTING_FIELDS",
    "InMemoryListingLedger",
    "LEDGER_READ_ABI",
    "LISTING_CREATED_DATA_TYPES",
    "LISTING_CREATED_EVENT_SIGNATURE",
    "Web3LedgerReader",
    "ledger_listing_from_call_result",
]
