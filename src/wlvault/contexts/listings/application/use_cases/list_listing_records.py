from __future__ import annotations

from wlvault.contexts.listings.application.ports import ListingRecordRepository
from wlvault.contexts.listings.domain.entities import ListingRecord


class ListListingRecordsUseCase:
    def __init__(self, *, repository: ListingRecordRepository) -> None:
        if repository is None:  # type: ignore[truthy-bool]
            raise ValueError("ListListingRecordsUseCase requires repository")
        self._repository = repository

    def list(self) -> tuple[ListingRecord, ...]:
        return self._repository.list()
