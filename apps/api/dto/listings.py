"""
Pydantic request/response models and mappers for the listings API.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict

from wlvault.contexts.listings.application.use_cases import LinkResult, ListingSubmissionResult
from wlvault.contexts.listings.domain.entities import ListingRecord
from wlvault.contexts.sealing.application.use_cases import DecryptionChallenge
from wlvault.contexts.sealing.domain.entities import (
    EncryptedListingSubmission,
    PurchasedSecrets,
)


class EncryptListingRequest(BaseModel):
    """
    Request payload for `POST /listings/encrypt`.

    `seller_wallet` and `private_key` are the secrets to seal; they are never stored or logged.
    """

    model_config = ConfigDict(extra="forbid")

    project_name: str
    quantity: int
    price: str
    collateral: str = "0"
    mint_date: int = 0
    seller: str
    seller_wallet: str
    private_key: str


class LinkListingRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    receipt: dict[str, Any]
    fallback_listing_id: int | None = None


class DecryptionRequestCreateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    requester: str


class DecryptionSignatureRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    signature: str


class ListingRecordResponse(BaseModel):
    """
    Public listing record; `id` is the on-chain id once linked, else the temporary id.
    """

    id: int
    temp_id: int
    on_chain_id: int | None
    linked: bool
    id_source: Literal["event", "fallback"] | None
    tx_hash: str | None
    pending_tx_hash: str | None
    project_name: str
    quantity: int
    price: str
    price_minor_units: int
    collateral: str
    mint_date: int
    seller: str
    created_at: datetime
    linked_at: datetime | None


class EncryptedSubmissionResponse(BaseModel):
    price_handle: str
    wallet_handles: list[str]
    key_handles: list[str]
    proof: str


class EncryptionStatsResponse(BaseModel):
    handle_count: int
    proof_size_bytes: int


class EncryptListingResponse(BaseModel):
    listing: ListingRecordResponse
    encrypted: EncryptedSubmissionResponse
    stats: EncryptionStatsResponse


class LinkListingResponse(BaseModel):
    listing: ListingRecordResponse
    already_linked: bool
    warning: str | None = None


class DecryptionChallengeResponse(BaseModel):
    request_id: str
    listing_id: int
    typed_data: dict[str, Any]
    expires_at: datetime


class PurchasedSecretsResponse(BaseModel):
    listing_id: int
    seller_wallet: str
    private_key: str


def to_listing_record_response(*, record: ListingRecord) -> ListingRecordResponse:
    metadata = record.metadata
    return ListingRecordResponse(
        id=record.public_id,
        temp_id=record.temp_id,
        on_chain_id=record.on_chain_id,
        linked=record.linked,
        id_source=record.id_source,
        tx_hash=record.tx_hash,
        pending_tx_hash=record.pending_tx_hash,
        project_name=metadata.project_name,
        quantity=metadata.quantity,
        price=metadata.price_eth,
        price_minor_units=metadata.price_minor_units,
        collateral=metadata.collateral_eth,
        mint_date=metadata.mint_date,
        seller=record.seller.checksum,
        created_at=record.created_at,
        linked_at=record.linked_at,
    )


def to_encrypted_submission_response(
    *,
    submission: EncryptedListingSubmission,
) -> EncryptedSubmissionResponse:
    return EncryptedSubmissionResponse(
        price_handle=submission.price_handle.hex,
        wallet_handles=[handle.hex for handle in submission.wallet_handles],
        key_handles=[handle.hex for handle in submission.key_handles],
        proof="0x" + submission.proof.hex(),
    )


def to_encrypt_listing_response(*, result: ListingSubmissionResult) -> EncryptListingResponse:
    return EncryptListingResponse(
        listing=to_listing_record_response(record=result.record),
        encrypted=to_encrypted_submission_response(submission=result.submission),
        stats=EncryptionStatsResponse(
            handle_count=result.stats.handle_count,
            proof_size_bytes=result.stats.proof_size_bytes,
        ),
    )


def to_link_listing_response(*, result: LinkResult) -> LinkListingResponse:
    return LinkListingResponse(
        listing=to_listing_record_response(record=result.record),
        already_linked=result.already_linked,
        warning=str(result.warning) if result.warning is not None else None,
    )


def to_decryption_challenge_response(
    *,
    challenge: DecryptionChallenge,
) -> DecryptionChallengeResponse:
    return DecryptionChallengeResponse(
        request_id=challenge.request_id,
        listing_id=challenge.listing_id,
        typed_data=challenge.typed_data,
        expires_at=challenge.expires_at,
    )


def to_purchased_secrets_response(
    *,
    listing_id: int,
    secrets: PurchasedSecrets,
) -> PurchasedSecretsResponse:
    return PurchasedSecretsResponse(
        listing_id=listing_id,
        seller_wallet=secrets.seller_wallet.checksum,
        private_key=secrets.private_key_hex,
    )
