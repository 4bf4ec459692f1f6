from __future__ import annotations

from datetime import datetime, timezone

import pytest

from wlvault.contexts.sealing.adapters.outbound import (
    InMemoryFheGateway,
    InMemoryListingLedger,
    LocalAccountPermissionSigner,
    PresentedSignaturePermissionSigner,
    X25519EphemeralKeyPairFactory,
)
from wlvault.contexts.sealing.application.use_cases import (
    BuildEncryptedSubmissionUseCase,
    DecryptionPermissionNegotiator,
    DecryptPurchasedSecretsUseCase,
    PendingDecryptionRequests,
    VerifyBuyerAuthorizationUseCase,
)
from wlvault.contexts.sealing.domain.entities import EphemeralKeyPair, PermissionDomain
from wlvault.contexts.sealing.domain.errors import (
    DecryptionRequestNotFoundError,
    NotPurchasedError,
    UnauthorizedError,
)
from wlvault.shared_kernel.primitives import EvmAddress

_SELLER_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
_BUYER_KEY = "0x59c6995e998f97a5a0044966f0945389dc9e86dae88c7a8412f4603b6b78690d"
_CONTRACT = EvmAddress("0x756cB08969c95D9c9178047304A4b1E316E4c8d7")
_SECRET_WALLET = "0x3C44CdDdB6a900fa2b585dd299e03d12FA4293BC"
_SECRET_KEY = "0x" + "00" * 2 + "".join(f"{index:02x}" for index in range(3, 33))
_DOMAIN = PermissionDomain(
    chain_id=11155111,
    verifying_contract=EvmAddress("0xb6E160B1ff80D67Bfe90A85eE06Ce0A2613607D1"),
)


class _FixedClock:
    """
    Deterministic UTC clock shared by gateway, negotiator, and pending requests.
    """

    def now(self) -> datetime:
        return datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


class _CountingKeyPairFactory:
    """
    Key pair factory wrapper counting generated pairs.
    """

    def __init__(self) -> None:
        self._inner = X25519EphemeralKeyPairFactory()
        self.generated = 0

    def generate(self) -> EphemeralKeyPair:
        self.generated += 1
        return self._inner.generate()


def _wire() -> tuple[
    DecryptPurchasedSecretsUseCase,
    InMemoryListingLedger,
    _CountingKeyPairFactory,
]:
    """
    Wire decrypt use case over in-memory gateway and ledger with one created listing.

    Args:
        None.
    Returns:
        tuple[DecryptPurchasedSecretsUseCase, InMemoryListingLedger, _CountingKeyPairFactory]:
        Use case, ledger holding listing id 1, and the counting key factory.
    Assumptions:
        Seller is Hardhat account 0; the listing is not purchased yet.
    Raises:
        ValueError: If in-memory ledger rejects the encrypted input.
    Side Effects:
        None.
    """
    clock = _FixedClock()
    gateway = InMemoryFheGateway(domain=_DOMAIN, clock=clock)
    ledger = InMemoryListingLedger(contract_address=_CONTRACT, gateway=gateway)
    seller = LocalAccountPermissionSigner(private_key=_SELLER_KEY).address
    submission = BuildEncryptedSubmissionUseCase(encryption_service=gateway).build(
        price_minor_units=500_000_000,
        seller_wallet=_SECRET_WALLET,
        private_key=_SECRET_KEY,
        contract_address=_CONTRACT,
        submitter=seller,
    )
    ledger.create_listing(
        seller=seller,
        project_name="Azuki Elementals",
        quantity=2,
        price_minor_units=500_000_000,
        submission=submission,
    )
    key_factory = _CountingKeyPairFactory()
    use_case = DecryptPurchasedSecretsUseCase(
        verifier=VerifyBuyerAuthorizationUseCase(ledger=ledger),
        negotiator=DecryptionPermissionNegotiator(
            decryption_service=gateway,
            key_pair_factory=key_factory,
            clock=clock,
            domain=_DOMAIN,
        ),
        pending_requests=PendingDecryptionRequests(clock=clock, ttl_seconds=300),
        contract_address=_CONTRACT,
    )
    return use_case, ledger, key_factory


def test_decrypt_returns_byte_identical_secrets_to_recorded_buyer() -> None:
    """
    Verify end-to-end sealing round trip: encrypt, list, buy, decrypt, reassemble.

    Args:
        None.
    Returns:
        None.
    Assumptions:
        Private key starts with zero bytes, which must survive reassembly.
    Raises:
        AssertionError: If decrypted secrets differ from sealed secrets.
    Side Effects:
        None.
    """
    use_case, ledger, _ = _wire()
    buyer = LocalAccountPermissionSigner(private_key=_BUYER_KEY)
    ledger.buy_listing(listing_id=1, buyer=buyer.address)

    secrets = use_case.decrypt(listing_id=1, requester=buyer.address.checksum, signer=buyer)

    assert secrets.seller_wallet == EvmAddress(_SECRET_WALLET)
    assert secrets.private_key_hex == _SECRET_KEY


def test_decrypt_checks_authorization_before_generating_keys() -> None:
    use_case, _, key_factory = _wire()
    buyer = LocalAccountPermissionSigner(private_key=_BUYER_KEY)

    with pytest.raises(NotPurchasedError):
        use_case.decrypt(listing_id=1, requester=buyer.address, signer=buyer)

    assert key_factory.generated == 0


def test_decrypt_rejects_seller_as_requester_after_purchase() -> None:
    use_case, ledger, _ = _wire()
    seller = LocalAccountPermissionSigner(private_key=_SELLER_KEY)
    ledger.buy_listing(
        listing_id=1,
        buyer=LocalAccountPermissionSigner(private_key=_BUYER_KEY).address,
    )

    with pytest.raises(UnauthorizedError):
        use_case.decrypt(listing_id=1, requester=seller.address, signer=seller)


def test_two_phase_flow_decrypts_with_presented_signature() -> None:
    """
    Verify `begin` issues typed data and `complete` decrypts with the signature over it.

    Args:
        None.
    Returns:
        None.
    Assumptions:
        Buyer signs the typed data client-side exactly as issued.
    Raises:
        AssertionError: If presented signature flow fails or request is reusable.
    Side Effects:
        None.
    """
    use_case, ledger, _ = _wire()
    buyer = LocalAccountPermissionSigner(private_key=_BUYER_KEY)
    ledger.buy_listing(listing_id=1, buyer=buyer.address)

    challenge = use_case.begin(listing_id=1, requester=buyer.address.value)
    signature = buyer.sign_typed_data(requester=buyer.address, typed_data=challenge.typed_data)
    secrets = use_case.complete(
        listing_id=1,
        request_id=challenge.request_id,
        signer=PresentedSignaturePermissionSigner(signature="0x" + signature.hex()),
    )

    assert challenge.listing_id == 1
    assert challenge.typed_data["message"]["contractAddresses"] == [_CONTRACT.checksum]
    assert secrets.private_key_hex == _SECRET_KEY
    with pytest.raises(DecryptionRequestNotFoundError):
        use_case.complete(
            listing_id=1,
            request_id=challenge.request_id,
            signer=PresentedSignaturePermissionSigner(signature="0x" + signature.hex()),
        )


def test_complete_rejects_request_issued_for_another_listing() -> None:
    use_case, ledger, _ = _wire()
    buyer = LocalAccountPermissionSigner(private_key=_BUYER_KEY)
    ledger.buy_listing(listing_id=1, buyer=buyer.address)
    challenge = use_case.begin(listing_id=1, requester=buyer.address)

    with pytest.raises(DecryptionRequestNotFoundError):
        use_case.complete(
            listing_id=2,
            request_id=challenge.request_id,
            signer=PresentedSignaturePermissionSigner(signature="0x" + "11" * 65),
        )
