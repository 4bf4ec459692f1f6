from __future__ import annotations

from datetime import datetime
from typing import Protocol


class SealingClock(Protocol):
    """
    SealingClock - application port providing timezone-aware UTC timestamps for permissions.

    Related:
      - src/wlvault/contexts/sealing/application/use_cases/negotiate_decryption_permission.py
      - src/wlvault/platform/time/system_clock.py
    """

    def now(self) -> datetime:
        """
        Return current timezone-aware UTC timestamp.

        Args:
            None.
        Returns:
            datetime: Current UTC timestamp.
        Assumptions:
            Returned datetime is timezone-aware with zero UTC offset.
        Raises:
            ValueError: If implementation cannot provide valid UTC datetime.
        Side Effects:
            None.
        """
        ...
