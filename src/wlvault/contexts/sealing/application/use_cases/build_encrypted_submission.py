from __future__ import annotations

import logging

from wlvault.contexts.sealing.application.ports import FheEncryptionService
from wlvault.contexts.sealing.domain.entities import EncryptedListingSubmission, PlaintextSlot
from wlvault.contexts.sealing.domain.errors import (
    EncodingError,
    EncryptionServiceError,
    ValidationError,
)
from wlvault.contexts.sealing.domain.services import to_bytes, to_slot_values
from wlvault.contexts.sealing.domain.value_objects import (
    LISTING_SECRET_LAYOUT,
    PRICE_FIELD,
    PRIVATE_KEY_FIELD,
    SELLER_WALLET_FIELD,
    TOTAL_SLOT_COUNT,
)
from wlvault.shared_kernel.primitives import EvmAddress

log = logging.getLogger(__name__)


class BuildEncryptedSubmissionUseCase:
    """
    BuildEncryptedSubmissionUseCase - encode listing secrets into 53 slots and encrypt them
    in one batch bound to the ledger contract and submitter.

    Related:
      - src/wlvault/contexts/sealing/domain/services/byte_codec.py
      - src/wlvault/contexts/sealing/application/ports/fhe_encryption_service.py
      - src/wlvault/contexts/listings/application/use_cases/submit_listing_for_encryption.py
    """

    def __init__(self, *, encryption_service: FheEncryptionService) -> None:
        if encryption_service is None:  # type: ignore[truthy-bool]
            raise ValueError("BuildEncryptedSubmissionUseCase requires encryption_service")
        self._encryption_service = encryption_service

    def build(
        self,
        *,
        price_minor_units: int,
        seller_wallet: object,
        private_key: object,
        contract_address: str | EvmAddress,
        submitter: str | EvmAddress,
    ) -> EncryptedListingSubmission:
        """
        Validate secrets, encrypt all slots in one call, and partition returned handles.

        Args:
            price_minor_units: Price in gwei.
            seller_wallet: 20-byte address as `EvmAddress`, `0x` hex, or bytes.
            private_key: 32-byte key as `0x` hex or bytes.
            contract_address: Ledger contract the ciphertexts are bound to.
            submitter: Seller account that will submit the listing transaction.
        Returns:
            EncryptedListingSubmission: Price handle, 20 wallet handles, 32 key handles, proof.
        Assumptions:
            Slot order is price, wallet bytes, key bytes; the ledger relies on it.
        Raises:
            ValidationError: If any input is malformed; raised before any external call.
            EncryptionServiceError: If the service fails or returns a wrong handle count.
        Side Effects:
            Exactly one encryption service call for valid input; no retries.
        """
        contract = _parse_address(value=contract_address, field_name="contract_address")
        submitter_address = _parse_address(value=submitter, field_name="submitter")
        if submitter_address.is_zero:
            raise ValidationError(field_name="submitter", message="submitter must not be zero")

        try:
            encoded = {
                PRICE_FIELD.name: to_bytes(price_minor_units, PRICE_FIELD),
                SELLER_WALLET_FIELD.name: to_bytes(seller_wallet, SELLER_WALLET_FIELD),
                PRIVATE_KEY_FIELD.name: to_bytes(private_key, PRIVATE_KEY_FIELD),
            }
        except EncodingError as error:
            raise ValidationError(field_name=error.field_name, message=error.message) from error

        slots: list[PlaintextSlot] = []
        for field in LISTING_SECRET_LAYOUT:
            for value in to_slot_values(encoded[field.name], field):
                slots.append(PlaintextSlot(bit_width=field.slot_bit_width, value=value))

        result = self._encryption_service.encrypt(
            contract_address=contract,
            submitter=submitter_address,
            slots=tuple(slots),
        )
        if len(result.handles) != TOTAL_SLOT_COUNT:
            raise EncryptionServiceError(
                service_message=(
                    f"expected {TOTAL_SLOT_COUNT} handles, got {len(result.handles)}"
                )
            )
        if not result.proof:
            raise EncryptionServiceError(service_message="encryption proof is empty")

        wallet_end = 1 + SELLER_WALLET_FIELD.slot_count
        submission = EncryptedListingSubmission(
            price_handle=result.handles[0],
            wallet_handles=result.handles[1:wallet_end],
            key_handles=result.handles[wallet_end:],
            proof=result.proof,
        )
        log.info(
            "listing secrets encrypted contract=%s submitter=%s handles=%s",
            contract,
            submitter_address,
            submission.handle_count,
        )
        return submission


def _parse_address(*, value: str | EvmAddress, field_name: str) -> EvmAddress:
    if isinstance(value, EvmAddress):
        return value
    try:
        return EvmAddress(value)
    except ValueError as error:
        raise ValidationError(
            field_name=field_name,
            message=f"{field_name} must be 0x-prefixed 20-byte hex",
        ) from error
