from __future__ import annotations

import re
from dataclasses import dataclass, replace
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Literal

from wlvault.contexts.listings.domain.errors import ListingAlreadyLinkedError
from wlvault.shared_kernel.primitives import EvmAddress

IdSource = Literal["event", "fallback"]
_ID_SOURCES = ("event", "fallback")
_TX_HASH_PATTERN = re.compile(r"^0x[0-9a-f]{64}$")


@dataclass(frozen=True, slots=True)
class ListingPublicMetadata:
    """
    ListingPublicMetadata - public, unencrypted listing attributes shown in the browser.

    Related:
      - src/wlvault/contexts/listings/application/use_cases/submit_listing_for_encryption.py
    """

    project_name: str
    quantity: int
    price_eth: str
    price_minor_units: int
    collateral_eth: str
    mint_date: int

    def __post_init__(self) -> None:
        """
        Validate public metadata invariants.

        Args:
            None.
        Returns:
            None.
        Assumptions:
            `price_minor_units` is the gwei rendering of `price_eth`.
        Raises:
            ValueError: If any field is blank, non-positive, or not a decimal amount.
        Side Effects:
            Strips project name whitespace.
        """
        normalized_name = self.project_name.strip()
        if not normalized_name:
            raise ValueError("ListingPublicMetadata.project_name must be non-empty")
        object.__setattr__(self, "project_name", normalized_name)
        if self.quantity <= 0:
            raise ValueError("ListingPublicMetadata.quantity must be > 0")
        if self.price_minor_units <= 0:
            raise ValueError("ListingPublicMetadata.price_minor_units must be > 0")
        if _decimal_or_none(self.collateral_eth) is None:
            raise ValueError("ListingPublicMetadata.collateral_eth must be a decimal >= 0")
        if self.mint_date < 0:
            raise ValueError("ListingPublicMetadata.mint_date must be >= 0")


@dataclass(frozen=True, slots=True)
class ListingRecord:
    """
    ListingRecord - off-chain record of a listing, linked once to its on-chain id.

    Temporary ids are allocated by the repository from 1. `pending_tx_hash` remembers a
    creation transaction whose receipt could not be resolved yet.

    Related:
      - src/wlvault/contexts/listings/application/ports/listing_record_repository.py
      - src/wlvault/contexts/listings/application/use_cases/link_listing_to_chain.py
    """

    temp_id: int
    metadata: ListingPublicMetadata
    seller: EvmAddress
    created_at: datetime
    on_chain_id: int | None = None
    tx_hash: str | None = None
    linked: bool = False
    id_source: IdSource | None = None
    pending_tx_hash: str | None = None
    linked_at: datetime | None = None

    def __post_init__(self) -> None:
        if self.temp_id <= 0:
            raise ValueError(f"ListingRecord.temp_id must be > 0, got {self.temp_id}")
        if self.created_at.tzinfo is None or self.created_at.utcoffset() is None:
            raise ValueError("ListingRecord.created_at must be timezone-aware UTC datetime")
        if self.linked:
            if self.on_chain_id is None or self.on_chain_id <= 0:
                raise ValueError("linked ListingRecord requires positive on_chain_id")
            if self.id_source not in _ID_SOURCES:
                raise ValueError("linked ListingRecord requires id_source event or fallback")
        elif self.on_chain_id is not None or self.id_source is not None:
            raise ValueError("unlinked ListingRecord cannot carry on_chain_id or id_source")
        for name in ("tx_hash", "pending_tx_hash"):
            value = getattr(self, name)
            if value is not None and not _TX_HASH_PATTERN.match(value):
                raise ValueError(f"ListingRecord.{name} must be lowercase 0x + 64 hex")

    @property
    def public_id(self) -> int:
        return self.on_chain_id if self.on_chain_id is not None else self.temp_id

    def link(
        self,
        *,
        on_chain_id: int,
        tx_hash: str | None,
        id_source: IdSource,
        linked_at: datetime,
    ) -> ListingRecord:
        """
        Return a linked copy of this record.

        Args:
            on_chain_id: Canonical ledger listing id.
            tx_hash: Creation transaction hash.
            id_source: `event` when decoded from the receipt, `fallback` when caller supplied.
            linked_at: UTC link timestamp.
        Returns:
            ListingRecord: Linked snapshot with pending hash cleared.
        Assumptions:
            Compare-and-set against concurrent links is the repository's job.
        Raises:
            ListingAlreadyLinkedError: If this record is already linked.
        Side Effects:
            None.
        """
        if self.linked:
            raise ListingAlreadyLinkedError(temp_id=self.temp_id, on_chain_id=on_chain_id)
        return replace(
            self,
            on_chain_id=on_chain_id,
            tx_hash=tx_hash,
            linked=True,
            id_source=id_source,
            pending_tx_hash=None,
            linked_at=linked_at,
        )

    def with_pending_tx(self, *, tx_hash: str) -> ListingRecord:
        return replace(self, pending_tx_hash=tx_hash)


def _decimal_or_none(raw: str) -> Decimal | None:
    try:
        value = Decimal(raw)
    except (InvalidOperation, TypeError):
        return None
    if not value.is_finite() or value < 0:
        return None
    return value
