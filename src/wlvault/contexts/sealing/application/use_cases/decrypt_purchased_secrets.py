from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from wlvault.contexts.sealing.application.ports import PermissionSigner
from wlvault.contexts.sealing.application.use_cases.negotiate_decryption_permission import (
    DecryptionPermissionNegotiator,
)
from wlvault.contexts.sealing.application.use_cases.pending_decryption_requests import (
    PendingDecryptionRequests,
)
from wlvault.contexts.sealing.application.use_cases.reassemble_secrets import (
    reassemble_secrets,
)
from wlvault.contexts.sealing.application.use_cases.verify_buyer_authorization import (
    VerifyBuyerAuthorizationUseCase,
)
from wlvault.contexts.sealing.domain.entities import (
    DecryptionRequest,
    LedgerListing,
    PurchasedSecrets,
)
from wlvault.contexts.sealing.domain.errors import DecryptionRequestNotFoundError
from wlvault.shared_kernel.primitives import EvmAddress

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class DecryptionChallenge:
    """
    DecryptionChallenge - first-phase output: typed data the buyer must sign.
    """

    request_id: str
    listing_id: int
    typed_data: dict[str, Any]
    expires_at: datetime


class DecryptPurchasedSecretsUseCase:
    """
    DecryptPurchasedSecretsUseCase - authorize buyer, negotiate a permission, decrypt the
    wallet and key handles, and reassemble the seller secrets.

    Runs either in one call with a live signer (`decrypt`) or in two HTTP phases
    (`begin` issues typed data, `complete` consumes the presented signature).

    Related:
      - src/wlvault/contexts/sealing/application/use_cases/verify_buyer_authorization.py
      - src/wlvault/contexts/sealing/application/use_cases/negotiate_decryption_permission.py
      - src/wlvault/contexts/sealing/application/use_cases/reassemble_secrets.py
      - apps/api/routes/listings.py
    """

    def __init__(
        self,
        *,
        verifier: VerifyBuyerAuthorizationUseCase,
        negotiator: DecryptionPermissionNegotiator,
        pending_requests: PendingDecryptionRequests,
        contract_address: EvmAddress,
    ) -> None:
        if verifier is None:  # type: ignore[truthy-bool]
            raise ValueError("DecryptPurchasedSecretsUseCase requires verifier")
        if negotiator is None:  # type: ignore[truthy-bool]
            raise ValueError("DecryptPurchasedSecretsUseCase requires negotiator")
        if pending_requests is None:  # type: ignore[truthy-bool]
            raise ValueError("DecryptPurchasedSecretsUseCase requires pending_requests")
        self._verifier = verifier
        self._negotiator = negotiator
        self._pending_requests = pending_requests
        self._contract_address = contract_address

    def decrypt(
        self,
        *,
        listing_id: int,
        requester: str | EvmAddress,
        signer: PermissionSigner,
    ) -> PurchasedSecrets:
        """
        Run the whole buyer flow in one call.

        Args:
            listing_id: On-chain listing id.
            requester: Buyer address.
            signer: Buyer signing capability.
        Returns:
            PurchasedSecrets: Seller wallet and private key.
        Assumptions:
            Authorization is checked before any key material is generated.
        Raises:
            SealingOperationError: Any typed failure from verifier, negotiator, or reassembler.
        Side Effects:
            One ledger read, one signer call, one decryption service call.
        """
        listing = self._verifier.verify(listing_id=listing_id, requester=requester)
        request = self._negotiator.prepare(
            requester=listing.buyer,
            contract_address=self._contract_address,
        )
        signed = self._negotiator.sign(request=request, signer=signer)
        return self._submit_and_reassemble(request=signed, listing=listing)

    def begin(self, *, listing_id: int, requester: str | EvmAddress) -> DecryptionChallenge:
        """
        Authorize the buyer and issue the permission typed data to sign.

        Args:
            listing_id: On-chain listing id.
            requester: Buyer address.
        Returns:
            DecryptionChallenge: Request id, typed data, and pending-entry expiry.
        Assumptions:
            The prepared request stays in process memory until `complete` or expiry.
        Raises:
            SealingOperationError: Authorization failures from the verifier.
        Side Effects:
            Stores one pending request.
        """
        listing = self._verifier.verify(listing_id=listing_id, requester=requester)
        request = self._negotiator.prepare(
            requester=listing.buyer,
            contract_address=self._contract_address,
        )
        entry = self._pending_requests.put(request=request, listing=listing)
        return DecryptionChallenge(
            request_id=request.request_id,
            listing_id=listing.listing_id,
            typed_data=self._negotiator.typed_data(request=request),
            expires_at=entry.expires_at,
        )

    def complete(
        self,
        *,
        listing_id: int,
        request_id: str,
        signer: PermissionSigner,
    ) -> PurchasedSecrets:
        """
        Consume a pending request with the buyer's presented signature and decrypt.

        Args:
            listing_id: Listing id the request was issued for.
            request_id: Id returned by `begin`.
            signer: Signer yielding the presented signature.
        Returns:
            PurchasedSecrets: Seller wallet and private key.
        Assumptions:
            Pending requests are single-use; a failed completion needs a new `begin`.
        Raises:
            DecryptionRequestNotFoundError: If the request is unknown, used, expired, or was
                issued for another listing.
            SealingOperationError: Any typed failure from negotiator or reassembler.
        Side Effects:
            Removes the pending request; one decryption service call.
        """
        entry = self._pending_requests.take(request_id=request_id)
        if entry.listing.listing_id != listing_id:
            raise DecryptionRequestNotFoundError(request_id=request_id)
        signed = self._negotiator.sign(request=entry.request, signer=signer)
        return self._submit_and_reassemble(request=signed, listing=entry.listing)

    def _submit_and_reassemble(
        self,
        *,
        request: DecryptionRequest,
        listing: LedgerListing,
    ) -> PurchasedSecrets:
        _, cleartexts = self._negotiator.submit(request=request, handles=listing.secret_handles)
        secrets = reassemble_secrets(
            cleartexts=cleartexts,
            wallet_handles=listing.wallet_handles,
            key_handles=listing.key_handles,
        )
        log.info(
            "purchased secrets decrypted listing_id=%s request_id=%s",
            listing.listing_id,
            request.request_id,
        )
        return secrets
