from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from wlvault.contexts.sealing.application.use_cases import PendingDecryptionRequests
from wlvault.contexts.sealing.domain.entities import (
    DecryptionPermission,
    DecryptionRequest,
    EphemeralKeyPair,
    LedgerListing,
    LedgerListingStatus,
)
from wlvault.contexts.sealing.domain.errors import DecryptionRequestNotFoundError
from wlvault.shared_kernel.primitives import CiphertextHandle, EvmAddress

_BUYER = EvmAddress("0x70997970C51812dc3A010C7d01b50e0d17dc79C8")


class _MutableClock:
    """
    UTC clock whose value tests can advance.
    """

    def __init__(self, *, now_value: datetime) -> None:
        self.now_value = now_value

    def now(self) -> datetime:
        return self.now_value


def _request(*, request_id: str) -> DecryptionRequest:
    key_pair = EphemeralKeyPair(public_key=b"\x02" * 32, private_key=b"\x01" * 32)
    return DecryptionRequest(
        request_id=request_id,
        permission=DecryptionPermission(
            requester=_BUYER,
            contract_addresses=(EvmAddress("0x756cB08969c95D9c9178047304A4b1E316E4c8d7"),),
            ephemeral_public_key=key_pair.public_key,
            start_timestamp=0,
            duration_days=1,
        ),
        key_pair=key_pair,
    )


def _listing() -> LedgerListing:
    return LedgerListing(
        listing_id=3,
        seller=EvmAddress("0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"),
        buyer=_BUYER,
        wallet_handles=tuple(CiphertextHandle(b"\x01" * 32) for _ in range(20)),
        key_handles=tuple(CiphertextHandle(b"\x02" * 32) for _ in range(32)),
        status=LedgerListingStatus.SOLD,
    )


def test_pending_request_can_be_taken_exactly_once() -> None:
    """
    Verify pending entries are single-use.

    Args:
        None.
    Returns:
        None.
    Assumptions:
        A second take of the same id behaves as unknown.
    Raises:
        AssertionError: If entry can be reused.
    Side Effects:
        None.
    """
    clock = _MutableClock(now_value=datetime(2026, 3, 1, tzinfo=timezone.utc))
    pending = PendingDecryptionRequests(clock=clock, ttl_seconds=60)
    entry = pending.put(request=_request(request_id="a"), listing=_listing())

    assert entry.expires_at == datetime(2026, 3, 1, 0, 1, tzinfo=timezone.utc)
    assert pending.take(request_id="a").listing.listing_id == 3
    with pytest.raises(DecryptionRequestNotFoundError):
        pending.take(request_id="a")


def test_pending_request_expires_after_ttl() -> None:
    clock = _MutableClock(now_value=datetime(2026, 3, 1, tzinfo=timezone.utc))
    pending = PendingDecryptionRequests(clock=clock, ttl_seconds=60)
    pending.put(request=_request(request_id="a"), listing=_listing())
    pending.put(request=_request(request_id="b"), listing=_listing())

    clock.now_value += timedelta(seconds=60)

    with pytest.raises(DecryptionRequestNotFoundError, match="not found or has expired"):
        pending.take(request_id="a")
    assert len(pending) == 0


def test_pending_requests_rejects_non_positive_ttl() -> None:
    with pytest.raises(ValueError, match="ttl_seconds must be > 0"):
        PendingDecryptionRequests(
            clock=_MutableClock(now_value=datetime(2026, 3, 1, tzinfo=timezone.utc)),
            ttl_seconds=0,
        )
