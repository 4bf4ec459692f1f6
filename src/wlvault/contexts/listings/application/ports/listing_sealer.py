from __future__ import annotations

from typing import Protocol

from wlvault.contexts.sealing.domain.entities import EncryptedListingSubmission
from wlvault.shared_kernel.primitives import EvmAddress


class ListingSealer(Protocol):
    """
    ListingSealer - port to the secret sealing pipeline used at listing submission.

    Satisfied by `BuildEncryptedSubmissionUseCase`.
    """

    def build(
        self,
        *,
        price_minor_units: int,
        seller_wallet: object,
        private_key: object,
        contract_address: str | EvmAddress,
        submitter: str | EvmAddress,
    ) -> EncryptedListingSubmission:
        ...
