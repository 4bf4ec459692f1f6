from __future__ import annotations

from typing import Protocol

from wlvault.contexts.sealing.domain.entities import EphemeralKeyPair


class EphemeralKeyPairFactory(Protocol):
    """
    EphemeralKeyPairFactory - port producing a fresh single-use key pair per permission.
    """

    def generate(self) -> EphemeralKeyPair:
        ...
