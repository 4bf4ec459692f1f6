from __future__ import annotations

import threading
from dataclasses import dataclass
from datetime import datetime, timedelta

from wlvault.contexts.sealing.application.ports import SealingClock
from wlvault.contexts.sealing.domain.entities import DecryptionRequest, LedgerListing
from wlvault.contexts.sealing.domain.errors import DecryptionRequestNotFoundError


@dataclass(frozen=True, slots=True)
class PendingDecryption:
    request: DecryptionRequest
    listing: LedgerListing
    expires_at: datetime


class PendingDecryptionRequests:
    """
    PendingDecryptionRequests - in-process, TTL-bounded, single-use holder of prepared
    requests between the two HTTP phases (typed data issued, signature presented).

    Entries hold ephemeral private keys and are never persisted.

    Related:
      - src/wlvault/contexts/sealing/application/use_cases/decrypt_purchased_secrets.py
      - apps/api/wiring/modules/sealing.py
    """

    def __init__(self, *, clock: SealingClock, ttl_seconds: int) -> None:
        if clock is None:  # type: ignore[truthy-bool]
            raise ValueError("PendingDecryptionRequests requires clock")
        if ttl_seconds <= 0:
            raise ValueError("PendingDecryptionRequests ttl_seconds must be > 0")
        self._clock = clock
        self._ttl = timedelta(seconds=ttl_seconds)
        self._entries: dict[str, PendingDecryption] = {}
        self._lock = threading.Lock()

    def put(self, *, request: DecryptionRequest, listing: LedgerListing) -> PendingDecryption:
        now = self._clock.now()
        entry = PendingDecryption(request=request, listing=listing, expires_at=now + self._ttl)
        with self._lock:
            self._purge_expired(now=now)
            self._entries[request.request_id] = entry
        return entry

    def take(self, *, request_id: str) -> PendingDecryption:
        """
        Remove and return one pending entry.

        Args:
            request_id: Request id issued by `put`.
        Returns:
            PendingDecryption: Stored request and listing snapshot.
        Assumptions:
            An entry can be taken at most once.
        Raises:
            DecryptionRequestNotFoundError: If the id is unknown, already taken, or expired.
        Side Effects:
            Removes the entry and purges expired entries.
        """
        now = self._clock.now()
        with self._lock:
            self._purge_expired(now=now)
            entry = self._entries.pop(request_id, None)
        if entry is None:
            raise DecryptionRequestNotFoundError(request_id=request_id)
        return entry

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _purge_expired(self, *, now: datetime) -> None:
        expired = [key for key, entry in self._entries.items() if entry.expires_at <= now]
        for key in expired:
            del self._entries[key]
