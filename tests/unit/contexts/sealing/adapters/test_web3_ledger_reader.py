from __future__ import annotations

from types import SimpleNamespace

import pytest
import requests
from web3.exceptions import ContractLogicError

from wlvault.contexts.sealing.adapters.outbound.ledger import (
    GET_LISTING_FIELDS,
    Web3LedgerReader,
    ledger_listing_from_call_result,
)
from wlvault.contexts.sealing.domain.entities import LedgerListingStatus
from wlvault.contexts.sealing.domain.errors import LedgerReadError
from wlvault.shared_kernel.primitives import CiphertextHandle, EvmAddress

_SELLER = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"
_BUYER = "0x70997970C51812dc3A010C7d01b50e0d17dc79C8"
_ZERO = "0x0000000000000000000000000000000000000000"


def _struct(*, listing_id: int, seller: str, buyer: str, status: int) -> tuple[object, ...]:
    """
    Build positional `getListing` struct as web3 decodes it.

    Args:
        listing_id: Listing id field.
        seller: Seller address field.
        buyer: Buyer address field.
        status: Raw status enum value.
    Returns:
        tuple[object, ...]: Struct values in ABI component order.
    Assumptions:
        Encrypted handle arrays arrive as raw 32-byte values.
    Raises:
        None.
    Side Effects:
        None.
    """
    values = {
        "listingId": listing_id,
        "seller": seller,
        "encryptedSellerWallet": [bytes([1, index]) + b"\x00" * 30 for index in range(20)],
        "buyer": buyer,
        "nftProject": "Pudgy Penguins",
        "quantity": 1,
        "price": 500_000_000,
        "collateral": 0,
        "buyerPayment": 0,
        "encryptedPrivateKey": [bytes([2, index]) + b"\x00" * 30 for index in range(32)],
        "privateKeyHash": b"\x00" * 32,
        "mintDate": 0,
        "confirmationDeadline": 0,
        "status": status,
        "createdAt": 0,
        "soldAt": 0,
        "completedAt": 0,
        "hasCollateral": False,
        "mintDateSet": False,
        "decryptionEnabled": True,
        "underManualReview": False,
        "reviewNotes": "",
    }
    return tuple(values[name] for name in GET_LISTING_FIELDS)


def test_call_result_maps_positional_struct_to_ledger_listing() -> None:
    listing = ledger_listing_from_call_result(
        listing_id=4,
        raw=_struct(listing_id=4, seller=_SELLER, buyer=_BUYER, status=1),
    )

    assert listing is not None
    assert listing.seller == EvmAddress(_SELLER)
    assert listing.buyer == EvmAddress(_BUYER)
    assert listing.status is LedgerListingStatus.SOLD
    assert listing.wallet_handles[3] == CiphertextHandle(bytes([1, 3]) + b"\x00" * 30)
    assert len(listing.key_handles) == 32


def test_call_result_unwraps_single_element_tuple_and_named_mapping() -> None:
    raw = _struct(listing_id=4, seller=_SELLER, buyer=_ZERO, status=0)
    named = dict(zip(GET_LISTING_FIELDS, raw))

    from_wrapped = ledger_listing_from_call_result(listing_id=4, raw=(raw,))
    from_named = ledger_listing_from_call_result(listing_id=4, raw=named)

    assert from_wrapped == from_named
    assert from_wrapped is not None
    assert not from_wrapped.has_buyer


def test_call_result_returns_none_for_zeroed_struct() -> None:
    """
    Verify an unknown id, which the contract returns as a zeroed struct, maps to `None`.

    Args:
        None.
    Returns:
        None.
    Assumptions:
        Zero listing id with zero seller is the contract's "absent" marker.
    Raises:
        AssertionError: If zeroed struct maps to a listing.
    Side Effects:
        None.
    """
    raw = _struct(listing_id=0, seller=_ZERO, buyer=_ZERO, status=0)

    assert ledger_listing_from_call_result(listing_id=9, raw=raw) is None


def test_call_result_rejects_unexpected_struct_shape() -> None:
    with pytest.raises(ValueError, match="unexpected struct shape"):
        ledger_listing_from_call_result(listing_id=1, raw=(1, 2, 3))


class _Call:
    def __init__(self, outcome: object) -> None:
        self._outcome = outcome

    def call(self) -> object:
        if isinstance(self._outcome, Exception):
            raise self._outcome
        return self._outcome


class _FakeWeb3:
    """
    Minimal Web3 double: `eth.contract(...).functions.getListing(id).call()` replays `outcome`.
    """

    def __init__(self, outcome: object) -> None:
        functions = SimpleNamespace(getListing=lambda listing_id: _Call(outcome))
        contract = SimpleNamespace(functions=functions)
        self.eth = SimpleNamespace(contract=lambda **kwargs: contract)


def _reader(outcome: object) -> Web3LedgerReader:
    return Web3LedgerReader(
        rpc_url="",
        contract_address=EvmAddress("0x756cB08969c95D9c9178047304A4b1E316E4c8d7"),
        web3=_FakeWeb3(outcome),  # type: ignore[arg-type]
    )


def test_reader_maps_successful_call() -> None:
    listing = _reader(_struct(listing_id=4, seller=_SELLER, buyer=_BUYER, status=1)).get_listing(
        listing_id=4
    )

    assert listing is not None
    assert listing.buyer == EvmAddress(_BUYER)


@pytest.mark.parametrize(
    ("outcome", "reason"),
    [
        (requests.ConnectionError("rpc down"), "rpc down"),
        (ContractLogicError("execution reverted"), "execution reverted"),
        ((1, 2, 3), "getListing returned unexpected struct shape"),
    ],
)
def test_reader_raises_ledger_read_error_on_failure(
    outcome: object,
    reason: str,
    caplog: pytest.LogCaptureFixture,
) -> None:
    """
    Verify transport errors, reverts, and bad structs surface as typed upstream errors.

    Args:
        outcome: Call result or raised exception.
        reason: Expected reason detail.
        caplog: Pytest log capture fixture.
    Returns:
        None.
    Assumptions:
        The underlying failure is logged before translation.
    Raises:
        AssertionError: If the error type, details, or log record are wrong.
    Side Effects:
        None.
    """
    with pytest.raises(LedgerReadError) as error_info:
        _reader(outcome).get_listing(listing_id=7)

    assert error_info.value.code == "upstream_error"
    assert error_info.value.details["listing_id"] == 7
    assert reason in error_info.value.details["reason"]
    assert "getListing(7) failed" in caplog.text
