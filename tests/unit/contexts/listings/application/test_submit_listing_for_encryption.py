from __future__ import annotations

from datetime import datetime, timezone

import pytest

from wlvault.contexts.listings.adapters.outbound import InMemoryListingRecordRepository
from wlvault.contexts.listings.application.use_cases import (
    GetListingRecordUseCase,
    ListListingRecordsUseCase,
    SubmitListingForEncryptionUseCase,
)
from wlvault.contexts.listings.domain.errors import (
    ListingRecordNotFoundError,
    ListingValidationError,
)
from wlvault.contexts.sealing.domain.entities import EncryptedListingSubmission
from wlvault.contexts.sealing.domain.errors import EncryptionServiceError
from wlvault.shared_kernel.primitives import CiphertextHandle, EvmAddress

_CONTRACT = EvmAddress("0x756cB08969c95D9c9178047304A4b1E316E4c8d7")
_SELLER = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"
_WALLET = "0x70997970C51812dc3A010C7d01b50e0d17dc79C8"
_KEY = "0x" + "11" * 32


class _FixedClock:
    def now(self) -> datetime:
        return datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


class _SealerStub:
    """
    Listing sealer stub returning a fixed submission or raising a configured error.
    """

    def __init__(self, *, error: Exception | None = None) -> None:
        self._error = error
        self.calls: list[dict[str, object]] = []

    def build(
        self,
        *,
        price_minor_units: int,
        seller_wallet: object,
        private_key: object,
        contract_address: str | EvmAddress,
        submitter: str | EvmAddress,
    ) -> EncryptedListingSubmission:
        self.calls.append(
            {
                "price_minor_units": price_minor_units,
                "seller_wallet": seller_wallet,
                "private_key": private_key,
                "contract_address": contract_address,
                "submitter": submitter,
            }
        )
        if self._error is not None:
            raise self._error
        return EncryptedListingSubmission(
            price_handle=CiphertextHandle(b"\x01" * 32),
            wallet_handles=tuple(CiphertextHandle(b"\x02" * 32) for _ in range(20)),
            key_handles=tuple(CiphertextHandle(b"\x03" * 32) for _ in range(32)),
            proof=b"\x99" * 100,
        )


def _use_case(
    *,
    sealer: _SealerStub,
    repository: InMemoryListingRecordRepository,
) -> SubmitListingForEncryptionUseCase:
    return SubmitListingForEncryptionUseCase(
        sealer=sealer,
        repository=repository,
        clock=_FixedClock(),
        contract_address=_CONTRACT,
    )


def _submit(use_case: SubmitListingForEncryptionUseCase, **overrides: object) -> object:
    arguments: dict[str, object] = {
        "project_name": "Azuki Elementals",
        "quantity": 2,
        "price_eth": "0.5",
        "collateral_eth": "0.1",
        "mint_date": 1_767_225_600,
        "seller": _SELLER,
        "seller_wallet": _WALLET,
        "private_key": _KEY,
    }
    arguments.update(overrides)
    return use_case.submit(**arguments)  # type: ignore[arg-type]


def test_submit_seals_secrets_and_stores_record_with_sequential_temp_ids() -> None:
    """
    Verify submission converts price to gwei, seals secrets, and stores unlinked records.

    Args:
        None.
    Returns:
        None.
    Assumptions:
        Temporary ids start at 1 and increase by one.
    Raises:
        AssertionError: If record fields, sealer call, or stats are wrong.
    Side Effects:
        None.
    """
    sealer = _SealerStub()
    repository = InMemoryListingRecordRepository()
    use_case = _use_case(sealer=sealer, repository=repository)

    first = use_case.submit(
        project_name="Azuki Elementals",
        quantity=2,
        price_eth="0.5",
        collateral_eth="0.1",
        mint_date=1_767_225_600,
        seller=_SELLER,
        seller_wallet=_WALLET,
        private_key=_KEY,
    )
    second = _submit(use_case, project_name="Moonbirds")

    assert first.record.temp_id == 1
    assert second.record.temp_id == 2  # type: ignore[attr-defined]
    assert first.record.metadata.price_minor_units == 500_000_000
    assert first.record.seller == EvmAddress(_SELLER)
    assert not first.record.linked
    assert first.stats.handle_count == 53
    assert first.stats.proof_size_bytes == 100
    assert sealer.calls[0]["price_minor_units"] == 500_000_000
    assert sealer.calls[0]["contract_address"] == _CONTRACT
    assert sealer.calls[0]["submitter"] == EvmAddress(_SELLER)


@pytest.mark.parametrize(
    ("overrides", "field_name"),
    [
        ({"project_name": "   "}, "project_name"),
        ({"quantity": 0}, "quantity"),
        ({"price_eth": "0"}, "price"),
        ({"price_eth": "0.0000000001"}, "price"),
        ({"collateral_eth": "-1"}, "collateral"),
        ({"mint_date": -1}, "mint_date"),
        ({"seller": "0x1234"}, "seller"),
    ],
)
def test_submit_rejects_invalid_metadata_before_sealing(
    overrides: dict[str, object],
    field_name: str,
) -> None:
    sealer = _SealerStub()
    repository = InMemoryListingRecordRepository()

    with pytest.raises(ListingValidationError) as error_info:
        _submit(_use_case(sealer=sealer, repository=repository), **overrides)

    assert error_info.value.field_name == field_name
    assert sealer.calls == []
    assert repository.list() == ()


def test_submit_does_not_allocate_temp_id_when_sealing_fails() -> None:
    repository = InMemoryListingRecordRepository()
    failing = _use_case(
        sealer=_SealerStub(error=EncryptionServiceError(service_message="relayer down")),
        repository=repository,
    )

    with pytest.raises(EncryptionServiceError):
        _submit(failing)
    result = _submit(_use_case(sealer=_SealerStub(), repository=repository))

    assert result.record.temp_id == 1  # type: ignore[attr-defined]


def test_get_and_list_listing_records() -> None:
    repository = InMemoryListingRecordRepository()
    use_case = _use_case(sealer=_SealerStub(), repository=repository)
    _submit(use_case)
    _submit(use_case, project_name="Moonbirds")

    records = ListListingRecordsUseCase(repository=repository).list()
    found = GetListingRecordUseCase(repository=repository).get(listing_id=2)

    assert [record.temp_id for record in records] == [1, 2]
    assert found.metadata.project_name == "Moonbirds"
    with pytest.raises(ListingRecordNotFoundError):
        GetListingRecordUseCase(repository=repository).get(listing_id=3)
