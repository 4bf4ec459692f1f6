from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Protocol, Sequence

from wlvault.shared_kernel.primitives import CiphertextHandle, EvmAddress


@dataclass(frozen=True, slots=True)
class HandleContractPair:
    handle: CiphertextHandle
    contract_address: EvmAddress


class FheDecryptionService(Protocol):
    """
    FheDecryptionService - port for user decryption under a signed, time-boxed permission.

    Related:
      - src/wlvault/contexts/sealing/application/use_cases/negotiate_decryption_permission.py
      - src/wlvault/contexts/sealing/adapters/outbound/fhe/http_fhe_gateway_client.py
      - src/wlvault/contexts/sealing/adapters/outbound/fhe/in_memory_fhe_gateway.py
    """

    def user_decrypt(
        self,
        *,
        handle_pairs: Sequence[HandleContractPair],
        ephemeral_private_key: bytes,
        ephemeral_public_key: bytes,
        signature: bytes,
        contract_addresses: Sequence[EvmAddress],
        requester: EvmAddress,
        start_timestamp: int,
        duration_days: int,
    ) -> Mapping[CiphertextHandle, int]:
        """
        Decrypt handles for the requester, verifying the permission on the service side.

        Args:
            handle_pairs: Handles to decrypt with the contract each is bound to.
            ephemeral_private_key: Private half of the permission key pair.
            ephemeral_public_key: Public half signed into the permission.
            signature: Requester signature over the permission typed data.
            contract_addresses: Contract list signed into the permission.
            requester: Address that signed the permission.
            start_timestamp: Signed validity start (unix seconds).
            duration_days: Signed validity duration.
        Returns:
            Mapping[CiphertextHandle, int]: Plaintext value per decrypted handle.
        Assumptions:
            Arguments are exactly the values that were signed.
        Raises:
            DecryptionServiceError: If the permission is rejected or the call fails.
        Side Effects:
            One remote decryption call.
        """
        ...
