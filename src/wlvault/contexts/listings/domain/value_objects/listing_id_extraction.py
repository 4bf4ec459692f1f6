from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Found:
    listing_id: int
    log_index: int

    def __post_init__(self) -> None:
        if self.listing_id <= 0:
            raise ValueError(f"Found.listing_id must be > 0, got {self.listing_id}")


@dataclass(frozen=True, slots=True)
class NotFound:
    reason: str


ListingIdExtraction = Found | NotFound
