from __future__ import annotations

from datetime import datetime
from typing import Protocol


class ListingsClock(Protocol):
    def now(self) -> datetime:
        ...
