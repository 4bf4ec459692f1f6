from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

from wlvault.contexts.listings.application.ports import (
    ListingRecordRepository,
    ListingSealer,
    ListingsClock,
)
from wlvault.contexts.listings.domain.entities import ListingPublicMetadata, ListingRecord
from wlvault.contexts.listings.domain.errors import ListingValidationError
from wlvault.contexts.sealing.domain.entities import EncryptedListingSubmission
from wlvault.contexts.sealing.domain.errors import EncodingError
from wlvault.contexts.sealing.domain.services import ether_to_minor_units
from wlvault.shared_kernel.primitives import EvmAddress

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class EncryptionStats:
    handle_count: int
    proof_size_bytes: int


@dataclass(frozen=True, slots=True)
class ListingSubmissionResult:
    record: ListingRecord
    submission: EncryptedListingSubmission
    stats: EncryptionStats


class SubmitListingForEncryptionUseCase:
    """
    SubmitListingForEncryptionUseCase - validate public metadata, seal the listing secrets,
    and store an unlinked off-chain record for the seller to submit on-chain.

    Related:
      - src/wlvault/contexts/sealing/application/use_cases/build_encrypted_submission.py
      - src/wlvault/contexts/listings/application/use_cases/link_listing_to_chain.py
      - apps/api/routes/listings.py
    """

    def __init__(
        self,
        *,
        sealer: ListingSealer,
        repository: ListingRecordRepository,
        clock: ListingsClock,
        contract_address: EvmAddress,
    ) -> None:
        if sealer is None:  # type: ignore[truthy-bool]
            raise ValueError("SubmitListingForEncryptionUseCase requires sealer")
        if repository is None:  # type: ignore[truthy-bool]
            raise ValueError("SubmitListingForEncryptionUseCase requires repository")
        if clock is None:  # type: ignore[truthy-bool]
            raise ValueError("SubmitListingForEncryptionUseCase requires clock")
        self._sealer = sealer
        self._repository = repository
        self._clock = clock
        self._contract_address = contract_address

    def submit(
        self,
        *,
        project_name: str,
        quantity: int,
        price_eth: str,
        collateral_eth: str,
        mint_date: int,
        seller: str,
        seller_wallet: str,
        private_key: str,
    ) -> ListingSubmissionResult:
        """
        Seal secrets and persist a new unlinked listing record.

        Args:
            project_name: Public project name.
            quantity: Whitelist spot count.
            price_eth: Price in ether as decimal string (`"0.5"`).
            collateral_eth: Seller collateral in ether as decimal string.
            mint_date: Mint date as unix seconds.
            seller: Seller account address (transaction sender).
            seller_wallet: Secret receiving address to seal.
            private_key: Secret key to seal.
        Returns:
            ListingSubmissionResult: Stored record, handle set, and encryption stats.
        Assumptions:
            A temporary id is allocated only after encryption succeeds.
        Raises:
            ListingValidationError: If public metadata is invalid.
            SealingOperationError: If secret validation or the encryption service fails.
        Side Effects:
            One encryption service call; one repository write.
        """
        metadata = _build_metadata(
            project_name=project_name,
            quantity=quantity,
            price_eth=price_eth,
            collateral_eth=collateral_eth,
            mint_date=mint_date,
        )
        try:
            seller_address = EvmAddress(seller)
        except ValueError as error:
            raise ListingValidationError(
                field_name="seller",
                message="seller must be 0x-prefixed 20-byte hex",
            ) from error

        submission = self._sealer.build(
            price_minor_units=metadata.price_minor_units,
            seller_wallet=seller_wallet,
            private_key=private_key,
            contract_address=self._contract_address,
            submitter=seller_address,
        )
        record = self._repository.put(
            record=ListingRecord(
                temp_id=self._repository.allocate_temp_id(),
                metadata=metadata,
                seller=seller_address,
                created_at=self._clock.now(),
            )
        )
        log.info(
            "listing submitted for encryption temp_id=%s seller=%s handles=%s",
            record.temp_id,
            seller_address,
            submission.handle_count,
        )
        return ListingSubmissionResult(
            record=record,
            submission=submission,
            stats=EncryptionStats(
                handle_count=submission.handle_count,
                proof_size_bytes=len(submission.proof),
            ),
        )


def _build_metadata(
    *,
    project_name: str,
    quantity: int,
    price_eth: str,
    collateral_eth: str,
    mint_date: int,
) -> ListingPublicMetadata:
    if not isinstance(project_name, str) or not project_name.strip():
        raise ListingValidationError(field_name="project_name", message="project_name is required")
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise ListingValidationError(field_name="quantity", message="quantity must be > 0")
    if isinstance(mint_date, bool) or not isinstance(mint_date, int) or mint_date < 0:
        raise ListingValidationError(field_name="mint_date", message="mint_date must be >= 0")
    try:
        price_minor_units = ether_to_minor_units(price_eth, field_name="price")
    except EncodingError as error:
        raise ListingValidationError(field_name="price", message=error.message) from error
    if price_minor_units <= 0:
        raise ListingValidationError(field_name="price", message="price must be > 0")
    try:
        collateral = Decimal(str(collateral_eth).strip())
    except InvalidOperation as error:
        raise ListingValidationError(
            field_name="collateral",
            message="collateral must be a decimal number",
        ) from error
    if not collateral.is_finite() or collateral < 0:
        raise ListingValidationError(field_name="collateral", message="collateral must be >= 0")
    return ListingPublicMetadata(
        project_name=project_name,
        quantity=quantity,
        price_eth=str(price_eth).strip(),
        price_minor_units=price_minor_units,
        collateral_eth=str(collateral_eth).strip(),
        mint_date=mint_date,
    )
