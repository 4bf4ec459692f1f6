from __future__ import annotations

import threading
from datetime import datetime, timezone
from typing import Any, Mapping

import pytest

from wlvault.contexts.listings.adapters.outbound import InMemoryListingRecordRepository
from wlvault.contexts.listings.application.use_cases import (
    GetListingRecordUseCase,
    LinkListingToChainUseCase,
    LinkResult,
)
from wlvault.contexts.listings.domain.entities import ListingPublicMetadata, ListingRecord
from wlvault.contexts.listings.domain.errors import (
    ListingAlreadyLinkedError,
    ListingRecordNotFoundError,
    ListingValidationError,
    ReconciliationUnresolvedError,
)
from wlvault.contexts.listings.domain.value_objects import Found, ListingIdExtraction, NotFound
from wlvault.shared_kernel.primitives import EvmAddress

_NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)
_TX_HASH = "0x" + "cd" * 32


class _FixedClock:
    def now(self) -> datetime:
        return _NOW


class _DecoderStub:
    """
    Receipt decoder stub replaying one configured extraction and counting calls.
    """

    def __init__(self, extraction: ListingIdExtraction) -> None:
        self.extraction = extraction
        self.calls = 0

    def extract_listing_id(self, *, receipt: Mapping[str, Any]) -> ListingIdExtraction:
        self.calls += 1
        return self.extraction


def _repository_with_records(count: int = 1) -> InMemoryListingRecordRepository:
    repository = InMemoryListingRecordRepository()
    for _ in range(count):
        repository.put(
            record=ListingRecord(
                temp_id=repository.allocate_temp_id(),
                metadata=ListingPublicMetadata(
                    project_name="Pudgy Penguins",
                    quantity=1,
                    price_eth="0.5",
                    price_minor_units=500_000_000,
                    collateral_eth="0",
                    mint_date=0,
                ),
                seller=EvmAddress("0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"),
                created_at=_NOW,
            )
        )
    return repository


def _receipt(*, status: object = 1) -> dict[str, Any]:
    return {"transactionHash": _TX_HASH, "status": status, "logs": []}


def test_link_uses_event_id_and_makes_record_reachable_by_on_chain_id() -> None:
    repository = _repository_with_records()
    use_case = LinkListingToChainUseCase(
        repository=repository,
        decoder=_DecoderStub(Found(listing_id=7, log_index=0)),
        clock=_FixedClock(),
    )

    result = use_case.link(temp_id=1, receipt=_receipt(), fallback_listing_id=99)

    assert not result.already_linked
    assert result.warning is None
    assert result.record.on_chain_id == 7
    assert result.record.id_source == "event"
    assert result.record.tx_hash == _TX_HASH
    assert GetListingRecordUseCase(repository=repository).get(listing_id=7).temp_id == 1


def test_link_replay_is_idempotent_and_skips_decoding() -> None:
    """
    Verify a second link call for a linked record returns it unchanged.

    Args:
        None.
    Returns:
        None.
    Assumptions:
        Replays may carry a different receipt; the stored link is authoritative.
    Raises:
        AssertionError: If replay re-decodes or changes the record.
    Side Effects:
        None.
    """
    decoder = _DecoderStub(Found(listing_id=7, log_index=0))
    use_case = LinkListingToChainUseCase(
        repository=_repository_with_records(),
        decoder=decoder,
        clock=_FixedClock(),
    )
    first = use_case.link(temp_id=1, receipt=_receipt())

    decoder.extraction = Found(listing_id=8, log_index=0)
    replay = use_case.link(temp_id=1, receipt=_receipt())

    assert replay.already_linked
    assert replay.record == first.record
    assert decoder.calls == 1


def test_link_falls_back_to_caller_id_with_warning() -> None:
    use_case = LinkListingToChainUseCase(
        repository=_repository_with_records(),
        decoder=_DecoderStub(NotFound(reason="receipt has no logs")),
        clock=_FixedClock(),
    )

    result = use_case.link(temp_id=1, receipt=_receipt(), fallback_listing_id=12)

    assert result.record.on_chain_id == 12
    assert result.record.id_source == "fallback"
    assert result.warning is not None
    assert result.warning.reason == "receipt has no logs"


def test_unresolved_link_remembers_tx_hash_and_can_be_completed_later() -> None:
    """
    Verify unresolved links keep the record pending with its tx hash for a later retry.

    Args:
        None.
    Returns:
        None.
    Assumptions:
        Unresolved reconciliation is recoverable.
    Raises:
        AssertionError: If pending state or later completion are wrong.
    Side Effects:
        None.
    """
    repository = _repository_with_records()
    decoder = _DecoderStub(NotFound(reason="no ListingCreated event from ledger contract"))
    use_case = LinkListingToChainUseCase(
        repository=repository,
        decoder=decoder,
        clock=_FixedClock(),
    )

    with pytest.raises(ReconciliationUnresolvedError) as error_info:
        use_case.link(temp_id=1, receipt=_receipt())

    assert error_info.value.tx_hash == _TX_HASH
    assert error_info.value.code == "reconciliation_unresolved"
    pending = repository.get(temp_id=1)
    assert pending is not None
    assert not pending.linked
    assert pending.pending_tx_hash == _TX_HASH

    decoder.extraction = Found(listing_id=3, log_index=0)
    result = use_case.link(temp_id=1, receipt=_receipt())

    assert result.record.on_chain_id == 3
    assert result.record.pending_tx_hash is None


@pytest.mark.parametrize("status", [0, "0x0"])
def test_link_rejects_reverted_receipt(status: object) -> None:
    decoder = _DecoderStub(Found(listing_id=7, log_index=0))
    use_case = LinkListingToChainUseCase(
        repository=_repository_with_records(),
        decoder=decoder,
        clock=_FixedClock(),
    )

    with pytest.raises(ListingValidationError, match="reverted"):
        use_case.link(temp_id=1, receipt=_receipt(status=status))

    assert decoder.calls == 0


def test_link_rejects_malformed_tx_hash_and_bad_fallback() -> None:
    use_case = LinkListingToChainUseCase(
        repository=_repository_with_records(),
        decoder=_DecoderStub(NotFound(reason="receipt has no logs")),
        clock=_FixedClock(),
    )

    with pytest.raises(ListingValidationError) as hash_error:
        use_case.link(temp_id=1, receipt={"transactionHash": "0x1234", "logs": []})
    with pytest.raises(ListingValidationError) as fallback_error:
        use_case.link(temp_id=1, receipt=_receipt(), fallback_listing_id=0)

    assert hash_error.value.field_name == "receipt.transactionHash"
    assert fallback_error.value.field_name == "fallback_listing_id"


def test_link_unknown_temp_id_raises_not_found() -> None:
    use_case = LinkListingToChainUseCase(
        repository=_repository_with_records(),
        decoder=_DecoderStub(Found(listing_id=7, log_index=0)),
        clock=_FixedClock(),
    )

    with pytest.raises(ListingRecordNotFoundError):
        use_case.link(temp_id=5, receipt=_receipt())


def test_link_rejects_on_chain_id_held_by_another_record() -> None:
    use_case = LinkListingToChainUseCase(
        repository=_repository_with_records(count=2),
        decoder=_DecoderStub(Found(listing_id=7, log_index=0)),
        clock=_FixedClock(),
    )
    use_case.link(temp_id=1, receipt=_receipt())

    with pytest.raises(ListingAlreadyLinkedError):
        use_case.link(temp_id=2, receipt=_receipt())


def test_concurrent_links_for_one_temp_id_apply_exactly_once() -> None:
    """
    Verify racing link calls for one temp id serialize: one applies, the rest replay.

    Args:
        None.
    Returns:
        None.
    Assumptions:
        A barrier releases all threads into `link` together.
    Raises:
        AssertionError: If more than one call applies the link or any call fails.
    Side Effects:
        Starts and joins worker threads.
    """
    workers = 8
    repository = _repository_with_records()
    decoder = _DecoderStub(Found(listing_id=7, log_index=0))
    use_case = LinkListingToChainUseCase(
        repository=repository,
        decoder=decoder,
        clock=_FixedClock(),
    )
    barrier = threading.Barrier(workers)
    results: list[LinkResult] = []
    errors: list[BaseException] = []

    def _worker() -> None:
        barrier.wait()
        try:
            results.append(use_case.link(temp_id=1, receipt=_receipt()))
        except BaseException as error:  # noqa: BLE001
            errors.append(error)

    threads = [threading.Thread(target=_worker) for _ in range(workers)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=10)

    assert errors == []
    assert len(results) == workers
    assert [result.already_linked for result in results].count(False) == 1
    assert {result.record.on_chain_id for result in results} == {7}
    assert decoder.calls == 1


def test_link_locks_stay_bounded_across_many_temp_ids() -> None:
    use_case = LinkListingToChainUseCase(
        repository=_repository_with_records(),
        decoder=_DecoderStub(Found(listing_id=7, log_index=0)),
        clock=_FixedClock(),
    )

    locks = {id(use_case._lock_for(temp_id=temp_id)) for temp_id in range(1, 10_001)}

    assert len(locks) <= 64
    assert use_case._lock_for(temp_id=5) is use_case._lock_for(temp_id=5)
