from __future__ import annotations

from datetime import datetime, timezone

import pytest

from wlvault.contexts.listings.adapters.outbound import InMemoryListingRecordRepository
from wlvault.contexts.listings.domain.entities import ListingPublicMetadata, ListingRecord
from wlvault.contexts.listings.domain.errors import (
    ListingAlreadyLinkedError,
    ListingRecordNotFoundError,
)
from wlvault.shared_kernel.primitives import EvmAddress

_NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def _put_record(repository: InMemoryListingRecordRepository) -> ListingRecord:
    return repository.put(
        record=ListingRecord(
            temp_id=repository.allocate_temp_id(),
            metadata=ListingPublicMetadata(
                project_name="Doodles",
                quantity=3,
                price_eth="1.25",
                price_minor_units=1_250_000_000,
                collateral_eth="0.1",
                mint_date=1_767_225_600,
            ),
            seller=EvmAddress("0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"),
            created_at=_NOW,
        )
    )


def test_link_if_unlinked_applies_once() -> None:
    repository = InMemoryListingRecordRepository()
    _put_record(repository)

    linked, applied = repository.link_if_unlinked(
        temp_id=1,
        on_chain_id=10,
        tx_hash=None,
        id_source="event",
        linked_at=_NOW,
    )
    again, applied_again = repository.link_if_unlinked(
        temp_id=1,
        on_chain_id=11,
        tx_hash=None,
        id_source="event",
        linked_at=_NOW,
    )

    assert applied
    assert not applied_again
    assert again == linked
    assert repository.get_by_on_chain_id(on_chain_id=10) == linked
    assert repository.get_by_on_chain_id(on_chain_id=11) is None


def test_on_chain_id_is_unique_across_records() -> None:
    repository = InMemoryListingRecordRepository()
    _put_record(repository)
    _put_record(repository)
    repository.link_if_unlinked(
        temp_id=1,
        on_chain_id=10,
        tx_hash=None,
        id_source="event",
        linked_at=_NOW,
    )

    with pytest.raises(ListingAlreadyLinkedError):
        repository.link_if_unlinked(
            temp_id=2,
            on_chain_id=10,
            tx_hash=None,
            id_source="fallback",
            linked_at=_NOW,
        )


def test_missing_record_operations_raise_not_found() -> None:
    repository = InMemoryListingRecordRepository()

    assert repository.get(temp_id=1) is None
    with pytest.raises(ListingRecordNotFoundError):
        repository.remember_pending_tx(temp_id=1, tx_hash="0x" + "ab" * 32)
    with pytest.raises(ListingRecordNotFoundError):
        repository.link_if_unlinked(
            temp_id=1,
            on_chain_id=10,
            tx_hash=None,
            id_source="event",
            linked_at=_NOW,
        )


def test_remember_pending_tx_keeps_record_unlinked() -> None:
    repository = InMemoryListingRecordRepository()
    stored = _put_record(repository)

    pending = repository.remember_pending_tx(temp_id=1, tx_hash="0x" + "ab" * 32)

    assert pending == stored.with_pending_tx(tx_hash="0x" + "ab" * 32)
    assert repository.get(temp_id=1) == pending
    assert not pending.linked
