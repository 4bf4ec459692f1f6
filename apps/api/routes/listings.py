"""
Listings API routes: seal and register listings, link them to the ledger, and run the
two-phase buyer decryption flow.
"""

from __future__ import annotations

from fastapi import APIRouter

from apps.api.common import map_operation_error
from apps.api.dto import (
    DecryptionChallengeResponse,
    DecryptionRequestCreateRequest,
    DecryptionSignatureRequest,
    EncryptListingRequest,
    EncryptListingResponse,
    LinkListingRequest,
    LinkListingResponse,
    ListingRecordResponse,
    PurchasedSecretsResponse,
    to_decryption_challenge_response,
    to_encrypt_listing_response,
    to_link_listing_response,
    to_listing_record_response,
    to_purchased_secrets_response,
)
from wlvault.contexts.listings.application.use_cases import (
    GetListingRecordUseCase,
    LinkListingToChainUseCase,
    ListListingRecordsUseCase,
    SubmitListingForEncryptionUseCase,
)
from wlvault.contexts.sealing.adapters.outbound.security import (
    PresentedSignaturePermissionSigner,
)
from wlvault.contexts.sealing.application.use_cases import DecryptPurchasedSecretsUseCase
from wlvault.platform.errors import MarketError


def build_listings_router(
    *,
    submit_use_case: SubmitListingForEncryptionUseCase,
    list_use_case: ListListingRecordsUseCase,
    get_use_case: GetListingRecordUseCase,
    link_use_case: LinkListingToChainUseCase,
    decrypt_use_case: DecryptPurchasedSecretsUseCase,
) -> APIRouter:
    """
    Build listings router over fully wired use cases.

    Args:
        submit_use_case: Listing submission use case.
        list_use_case: Listing records list use case.
        get_use_case: Listing record lookup use case.
        link_use_case: Listing reconciliation use case.
        decrypt_use_case: Buyer decryption use case.
    Returns:
        APIRouter: Router exposing `/listings` endpoints.
    Assumptions:
        Business logic lives in use cases; routes only map DTOs and errors.
    Raises:
        ValueError: If any required dependency is missing.
    Side Effects:
        None.
    """
    if submit_use_case is None:  # type: ignore[truthy-bool]
        raise ValueError("build_listings_router requires submit_use_case")
    if list_use_case is None:  # type: ignore[truthy-bool]
        raise ValueError("build_listings_router requires list_use_case")
    if get_use_case is None:  # type: ignore[truthy-bool]
        raise ValueError("build_listings_router requires get_use_case")
    if link_use_case is None:  # type: ignore[truthy-bool]
        raise ValueError("build_listings_router requires link_use_case")
    if decrypt_use_case is None:  # type: ignore[truthy-bool]
        raise ValueError("build_listings_router requires decrypt_use_case")

    router = APIRouter(tags=["listings"])

    @router.post("/listings/encrypt", response_model=EncryptListingResponse, status_code=201)
    def post_listings_encrypt(request: EncryptListingRequest) -> EncryptListingResponse:
        """
        Seal listing secrets and register an unlinked listing record.

        Args:
            request: Public metadata plus the secrets to seal.
        Returns:
            EncryptListingResponse: Record, handle set, proof, and encryption stats.
        Assumptions:
            Caller submits the returned handles and proof to the ledger itself.
        Raises:
            MarketError: Mapped from operation errors by global API error handlers.
        Side Effects:
            One encryption service call and one record write.
        """
        try:
            result = submit_use_case.submit(
                project_name=request.project_name,
                quantity=request.quantity,
                price_eth=request.price,
                collateral_eth=request.collateral,
                mint_date=request.mint_date,
                seller=request.seller,
                seller_wallet=request.seller_wallet,
                private_key=request.private_key,
            )
        except MarketError:
            raise
        except Exception as error:  # noqa: BLE001
            raise map_operation_error(error=error) from error
        return to_encrypt_listing_response(result=result)

    @router.get("/listings", response_model=list[ListingRecordResponse])
    def get_listings() -> list[ListingRecordResponse]:
        return [to_listing_record_response(record=record) for record in list_use_case.list()]

    @router.get("/listings/{listing_id}", response_model=ListingRecordResponse)
    def get_listing(listing_id: int) -> ListingRecordResponse:
        try:
            record = get_use_case.get(listing_id=listing_id)
        except MarketError:
            raise
        except Exception as error:  # noqa: BLE001
            raise map_operation_error(error=error) from error
        return to_listing_record_response(record=record)

    @router.post("/listings/{temp_id}/link", response_model=LinkListingResponse)
    def post_listing_link(temp_id: int, request: LinkListingRequest) -> LinkListingResponse:
        """
        Link a temporary record to its on-chain id decoded from the creation receipt.

        Args:
            temp_id: Temporary id returned by `POST /listings/encrypt`.
            request: Creation receipt and optional fallback id.
        Returns:
            LinkListingResponse: Linked record with idempotency flag and fallback warning.
        Assumptions:
            Repeating the call for a linked record returns the existing link.
        Raises:
            MarketError: `reconciliation_unresolved` (409) when no id can be determined.
        Side Effects:
            At most one record write.
        """
        try:
            result = link_use_case.link(
                temp_id=temp_id,
                receipt=request.receipt,
                fallback_listing_id=request.fallback_listing_id,
            )
        except MarketError:
            raise
        except Exception as error:  # noqa: BLE001
            raise map_operation_error(error=error) from error
        return to_link_listing_response(result=result)

    @router.post(
        "/listings/{listing_id}/decryption-requests",
        response_model=DecryptionChallengeResponse,
        status_code=201,
    )
    def post_decryption_request(
        listing_id: int,
        request: DecryptionRequestCreateRequest,
    ) -> DecryptionChallengeResponse:
        """
        Authorize the buyer and issue EIP-712 typed data for the decryption permission.

        Args:
            listing_id: On-chain listing id.
            request: Requester address.
        Returns:
            DecryptionChallengeResponse: Request id and typed data to sign.
        Assumptions:
            Requester proves control of the address by signing the typed data.
        Raises:
            MarketError: `not_found`, `not_purchased`, or `forbidden` authorization failures.
        Side Effects:
            One ledger read; stores one pending request.
        """
        try:
            challenge = decrypt_use_case.begin(listing_id=listing_id, requester=request.requester)
        except MarketError:
            raise
        except Exception as error:  # noqa: BLE001
            raise map_operation_error(error=error) from error
        return to_decryption_challenge_response(challenge=challenge)

    @router.post(
        "/listings/{listing_id}/decryption-requests/{request_id}/signature",
        response_model=PurchasedSecretsResponse,
    )
    def post_decryption_signature(
        listing_id: int,
        request_id: str,
        request: DecryptionSignatureRequest,
    ) -> PurchasedSecretsResponse:
        """
        Complete a pending decryption request with the buyer's signature.

        Args:
            listing_id: On-chain listing id the request was issued for.
            request_id: Pending request id.
            request: Presented 65-byte signature as `0x` hex.
        Returns:
            PurchasedSecretsResponse: Seller wallet and private key.
        Assumptions:
            Pending requests are single-use.
        Raises:
            MarketError: `permission_denied`, `upstream_error`, or `reassembly_error`.
        Side Effects:
            One decryption service call.
        """
        try:
            secrets = decrypt_use_case.complete(
                listing_id=listing_id,
                request_id=request_id,
                signer=PresentedSignaturePermissionSigner(signature=request.signature),
            )
        except MarketError:
            raise
        except Exception as error:  # noqa: BLE001
            raise map_operation_error(error=error) from error
        return to_purchased_secrets_response(listing_id=listing_id, secrets=secrets)

    return router


__all__ = ["build_listings_router"]
