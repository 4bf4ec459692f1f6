from __future__ import annotations

from wlvault.contexts.sealing.application.ports import LedgerReader
from wlvault.contexts.sealing.domain.entities import LedgerListing
from wlvault.contexts.sealing.domain.errors import (
    LedgerReadError,
    ListingNotFoundError,
    NotPurchasedError,
    SealingOperationError,
    UnauthorizedError,
    ValidationError,
)
from wlvault.shared_kernel.primitives import EvmAddress


class VerifyBuyerAuthorizationUseCase:
    """
    VerifyBuyerAuthorizationUseCase - confirm the requester is the buyer recorded on the ledger.

    Related:
      - src/wlvault/contexts/sealing/application/ports/ledger_reader.py
      - src/wlvault/contexts/sealing/application/use_cases/decrypt_purchased_secrets.py
    """

    def __init__(self, *, ledger: LedgerReader) -> None:
        if ledger is None:  # type: ignore[truthy-bool]
            raise ValueError("VerifyBuyerAuthorizationUseCase requires ledger")
        self._ledger = ledger

    def verify(self, *, listing_id: int, requester: str | EvmAddress) -> LedgerListing:
        """
        Check requester against the ledger's recorded buyer.

        Args:
            listing_id: On-chain listing id.
            requester: Claimed requester address.
        Returns:
            LedgerListing: Listing snapshot including the encrypted secret handles.
        Assumptions:
            Address comparison is case-insensitive through `EvmAddress` equality.
        Raises:
            ValidationError: If listing id or requester is malformed.
            ListingNotFoundError: If the ledger has no such listing.
            LedgerReadError: If the ledger read fails.
            NotPurchasedError: If the recorded buyer is unset.
            UnauthorizedError: If requester differs from the recorded buyer.
        Side Effects:
            One ledger read.
        """
        if isinstance(listing_id, bool) or not isinstance(listing_id, int) or listing_id <= 0:
            raise ValidationError(field_name="listing_id", message="listing_id must be > 0")
        if isinstance(requester, EvmAddress):
            requester_address = requester
        else:
            try:
                requester_address = EvmAddress(requester)
            except ValueError as error:
                raise ValidationError(
                    field_name="requester",
                    message="requester must be 0x-prefixed 20-byte hex",
                ) from error

        try:
            listing = self._ledger.get_listing(listing_id=listing_id)
        except SealingOperationError:
            raise
        except Exception as error:  # noqa: BLE001
            raise LedgerReadError(
                listing_id=listing_id,
                reason=str(error) or type(error).__name__,
            ) from error
        if listing is None:
            raise ListingNotFoundError(listing_id=listing_id)
        if not listing.has_buyer:
            raise NotPurchasedError(listing_id=listing_id)
        if listing.buyer != requester_address:
            raise UnauthorizedError(listing_id=listing_id, requester=requester_address.checksum)
        return listing
