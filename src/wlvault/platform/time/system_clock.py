from __future__ import annotations

from datetime import datetime, timezone


class SystemClock:
    """
    SystemClock - platform clock: "now" from system time as timezone-aware UTC datetime.

    Satisfies both `SealingClock` and `ListingsClock` ports.
    """

    def now(self) -> datetime:
        return datetime.now(timezone.utc)
