from __future__ import annotations

import threading
from dataclasses import dataclass, replace
from typing import Any

from eth_abi import encode
from eth_utils import keccak

from wlvault.contexts.sealing.adapters.outbound.fhe.in_memory_fhe_gateway import (
    InMemoryFheGateway,
)
from wlvault.contexts.sealing.adapters.outbound.ledger.listing_ledger_abi import (
    LISTING_CREATED_DATA_TYPES,
    LISTING_CREATED_EVENT_SIGNATURE,
)
from wlvault.contexts.sealing.application.ports import LedgerReader
from wlvault.contexts.sealing.domain.entities import (
    EncryptedListingSubmission,
    LedgerListing,
    LedgerListingStatus,
)
from wlvault.shared_kernel.primitives import EvmAddress


@dataclass(frozen=True, slots=True)
class _LedgerEntry:
    listing: LedgerListing
    project_name: str
    quantity: int
    price_minor_units: int


class InMemoryListingLedger(LedgerReader):
    """
    InMemoryListingLedger - dev/test stand-in for the escrow ledger contract.

    `create_listing` verifies the encrypted input against the gateway and returns a web3-style
    receipt carrying an ABI-encoded `ListingCreated` log; `buy_listing` records the buyer and
    grants it decryption access, as the contract does on purchase.

    Related:
      - src/wlvault/contexts/sealing/application/ports/ledger_reader.py
      - src/wlvault/contexts/sealing/adapters/outbound/fhe/in_memory_fhe_gateway.py
      - src/wlvault/contexts/listings/adapters/outbound/chain/abi_listing_created_decoder.py
    """

    def __init__(self, *, contract_address: EvmAddress, gateway: InMemoryFheGateway) -> None:
        if gateway is None:  # type: ignore[truthy-bool]
            raise ValueError("InMemoryListingLedger requires gateway")
        self._contract_address = contract_address
        self._gateway = gateway
        self._entries: dict[int, _LedgerEntry] = {}
        self._next_listing_id = 1
        self._tx_counter = 0
        self._lock = threading.Lock()

    @property
    def contract_address(self) -> EvmAddress:
        return self._contract_address

    def get_listing(self, *, listing_id: int) -> LedgerListing | None:
        with self._lock:
            entry = self._entries.get(listing_id)
        return entry.listing if entry is not None else None

    def create_listing(
        self,
        *,
        seller: EvmAddress,
        project_name: str,
        quantity: int,
        price_minor_units: int,
        submission: EncryptedListingSubmission,
    ) -> dict[str, Any]:
        """
        Store a listing and emit its creation event.

        Args:
            seller: Transaction sender.
            project_name: Public project name.
            quantity: Whitelist spot count.
            price_minor_units: Public price in gwei.
            submission: Encrypted handle set and proof.
        Returns:
            dict[str, Any]: Receipt with `transactionHash`, `status`, and `logs`.
        Assumptions:
            Listing ids are assigned sequentially from 1.
        Raises:
            ValueError: If the encrypted input is not bound to this contract and seller.
        Side Effects:
            Stores the listing and grants the seller access to its handles.
        """
        secret_handles = (*submission.wallet_handles, *submission.key_handles)
        if not self._gateway.verify_input(
            handles=submission.all_handles,
            proof=submission.proof,
            contract_address=self._contract_address,
            submitter=seller,
        ):
            raise ValueError("encrypted input is not valid for this contract and sender")
        with self._lock:
            listing_id = self._next_listing_id
            self._next_listing_id += 1
            listing = LedgerListing(
                listing_id=listing_id,
                seller=seller,
                buyer=EvmAddress.zero(),
                wallet_handles=submission.wallet_handles,
                key_handles=submission.key_handles,
                status=LedgerListingStatus.ACTIVE,
            )
            self._entries[listing_id] = _LedgerEntry(
                listing=listing,
                project_name=project_name,
                quantity=quantity,
                price_minor_units=price_minor_units,
            )
            tx_hash = self._next_tx_hash()
        self._gateway.grant_access(handles=secret_handles, account=seller)

        data = encode(list(LISTING_CREATED_DATA_TYPES), [project_name, quantity, price_minor_units])
        log_entry = {
            "address": self._contract_address.checksum,
            "topics": [
                "0x" + keccak(text=LISTING_CREATED_EVENT_SIGNATURE).hex(),
                "0x" + listing_id.to_bytes(32, "big").hex(),
                "0x" + (b"\x00" * 12 + seller.to_bytes()).hex(),
            ],
            "data": "0x" + data.hex(),
            "logIndex": 0,
            "transactionHash": tx_hash,
        }
        return {"transactionHash": tx_hash, "status": 1, "logs": [log_entry]}

    def buy_listing(self, *, listing_id: int, buyer: EvmAddress) -> dict[str, Any]:
        """
        Record a purchase and grant the buyer decryption access to the secret handles.

        Raises:
            ValueError: If the listing is unknown, not active, or bought by its seller.
        """
        with self._lock:
            entry = self._entries.get(listing_id)
            if entry is None:
                raise ValueError(f"listing {listing_id} does not exist")
            if entry.listing.status is not LedgerListingStatus.ACTIVE:
                raise ValueError(f"listing {listing_id} is not active")
            if entry.listing.seller == buyer:
                raise ValueError("seller cannot buy own listing")
            sold = replace(entry.listing, buyer=buyer, status=LedgerListingStatus.SOLD)
            self._entries[listing_id] = replace(entry, listing=sold)
            tx_hash = self._next_tx_hash()
        self._gateway.grant_access(handles=sold.secret_handles, account=buyer)
        return {"transactionHash": tx_hash, "status": 1, "logs": []}

    def _next_tx_hash(self) -> str:
        self._tx_counter += 1
        return "0x" + keccak(b"wlvault.tx" + self._tx_counter.to_bytes(8, "big")).hex()
