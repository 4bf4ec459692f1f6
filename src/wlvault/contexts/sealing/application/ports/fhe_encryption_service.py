from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, Sequence

from wlvault.contexts.sealing.domain.entities import PlaintextSlot
from wlvault.shared_kernel.primitives import CiphertextHandle, EvmAddress


@dataclass(frozen=True, slots=True)
class EncryptionResult:
    """
    EncryptionResult - normalized encryption service output: one handle per slot plus proof.

    Adapters build it only through `normalize_encryption_result`, so use-cases never see
    wire-level shapes.
    """

    handles: tuple[CiphertextHandle, ...]
    proof: bytes

    def __post_init__(self) -> None:
        object.__setattr__(self, "handles", tuple(self.handles))


class FheEncryptionService(Protocol):
    """
    FheEncryptionService - port for batch encryption of plaintext slots bound to a contract.

    Related:
      - src/wlvault/contexts/sealing/application/use_cases/build_encrypted_submission.py
      - src/wlvault/contexts/sealing/adapters/outbound/fhe/http_fhe_gateway_client.py
      - src/wlvault/contexts/sealing/adapters/outbound/fhe/in_memory_fhe_gateway.py
    """

    def encrypt(
        self,
        *,
        contract_address: EvmAddress,
        submitter: EvmAddress,
        slots: Sequence[PlaintextSlot],
    ) -> EncryptionResult:
        """
        Encrypt the whole slot batch in one call under one aggregate proof.

        Args:
            contract_address: Ledger contract the ciphertexts are bound to.
            submitter: Account allowed to submit the ciphertexts to that contract.
            slots: Ordered plaintext slots.
        Returns:
            EncryptionResult: Handles in slot order plus the batch proof.
        Assumptions:
            The call is never retried by the implementation.
        Raises:
            EncryptionServiceError: On transport failure, timeout, or service error.
        Side Effects:
            One remote encryption call.
        """
        ...
