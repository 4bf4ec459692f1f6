from __future__ import annotations

from wlvault.contexts.listings.application.ports import ListingRecordRepository
from wlvault.contexts.listings.domain.entities import ListingRecord
from wlvault.contexts.listings.domain.errors import ListingRecordNotFoundError


class GetListingRecordUseCase:
    """
    GetListingRecordUseCase - fetch one record by on-chain id, falling back to temporary id.
    """

    def __init__(self, *, repository: ListingRecordRepository) -> None:
        if repository is None:  # type: ignore[truthy-bool]
            raise ValueError("GetListingRecordUseCase requires repository")
        self._repository = repository

    def get(self, *, listing_id: int) -> ListingRecord:
        """
        Resolve a listing id the front end holds, which may be on-chain or temporary.

        Args:
            listing_id: On-chain id or temporary id.
        Returns:
            ListingRecord: Matching record.
        Assumptions:
            On-chain ids take precedence over temporary ids with the same value.
        Raises:
            ListingRecordNotFoundError: If neither lookup matches.
        Side Effects:
            Up to two repository reads.
        """
        record = self._repository.get_by_on_chain_id(on_chain_id=listing_id)
        if record is None:
            record = self._repository.get(temp_id=listing_id)
        if record is None:
            raise ListingRecordNotFoundError(listing_id=listing_id)
        return record
