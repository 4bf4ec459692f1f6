from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Iterable, Mapping, Sequence

from eth_account import Account
from eth_account.messages import encode_typed_data
from eth_utils import keccak

from wlvault.contexts.sealing.adapters.outbound.security import public_key_for
from wlvault.contexts.sealing.application.ports import (
    EncryptionResult,
    FheDecryptionService,
    FheEncryptionService,
    HandleContractPair,
    SealingClock,
)
from wlvault.contexts.sealing.domain.entities import (
    DecryptionPermission,
    PermissionDomain,
    PlaintextSlot,
)
from wlvault.contexts.sealing.domain.errors import DecryptionServiceError, EncryptionServiceError
from wlvault.shared_kernel.primitives import CiphertextHandle, EvmAddress

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class _StoredCiphertext:
    value: int
    bit_width: int
    contract_address: EvmAddress
    submitter: EvmAddress


class InMemoryFheGateway(FheEncryptionService, FheDecryptionService):
    """
    InMemoryFheGateway - dev/test stand-in for the encryption relayer and decryption service.

    Plaintexts stay in process memory keyed by deterministic handles. User decryption applies
    the same checks as the real service: ephemeral key consistency, EIP-712 signer recovery,
    validity window, contract binding, and per-handle access list.

    Related:
      - src/wlvault/contexts/sealing/application/ports/fhe_encryption_service.py
      - src/wlvault/contexts/sealing/application/ports/fhe_decryption_service.py
      - src/wlvault/contexts/sealing/adapters/outbound/ledger/in_memory_listing_ledger.py
      - apps/api/wiring/modules/sealing.py
    """

    def __init__(self, *, domain: PermissionDomain, clock: SealingClock) -> None:
        """
        Initialize in-memory gateway state.

        Args:
            domain: EIP-712 domain signatures are verified under.
            clock: Clock used for validity window checks.
        Returns:
            None.
        Assumptions:
            Instance is shared by all requests of one process.
        Raises:
            ValueError: If dependencies are missing.
        Side Effects:
            None.
        """
        if domain is None:  # type: ignore[truthy-bool]
            raise ValueError("InMemoryFheGateway requires domain")
        if clock is None:  # type: ignore[truthy-bool]
            raise ValueError("InMemoryFheGateway requires clock")
        self._domain = domain
        self._clock = clock
        self._ciphertexts: dict[CiphertextHandle, _StoredCiphertext] = {}
        self._acl: dict[CiphertextHandle, set[EvmAddress]] = {}
        self._batch_counter = 0
        self._lock = threading.Lock()
        self.encrypt_calls = 0
        self.decrypt_calls = 0

    def encrypt(
        self,
        *,
        contract_address: EvmAddress,
        submitter: EvmAddress,
        slots: Sequence[PlaintextSlot],
    ) -> EncryptionResult:
        if not slots:
            raise EncryptionServiceError(service_message="no values to encrypt")
        with self._lock:
            self.encrypt_calls += 1
            self._batch_counter += 1
            batch = self._batch_counter
            handles: list[CiphertextHandle] = []
            for index, slot in enumerate(slots):
                handle = CiphertextHandle(
                    keccak(
                        b"wlvault.handle"
                        + batch.to_bytes(8, "big")
                        + index.to_bytes(2, "big")
                        + contract_address.to_bytes()
                        + submitter.to_bytes()
                    )
                )
                self._ciphertexts[handle] = _StoredCiphertext(
                    value=slot.value,
                    bit_width=slot.bit_width,
                    contract_address=contract_address,
                    submitter=submitter,
                )
                self._acl[handle] = {contract_address}
                handles.append(handle)
        proof = keccak(b"".join(handle.value for handle in handles))
        return EncryptionResult(handles=tuple(handles), proof=proof)

    def grant_access(self, *, handles: Iterable[CiphertextHandle], account: EvmAddress) -> None:
        """
        Add `account` to the access list of each handle, as the ledger does on purchase.

        Raises:
            KeyError: If a handle was never issued by this gateway.
        """
        with self._lock:
            for handle in handles:
                if handle not in self._ciphertexts:
                    raise KeyError(f"unknown handle {handle.hex}")
                self._acl[handle].add(account)

    def verify_input(
        self,
        *,
        handles: Sequence[CiphertextHandle],
        proof: bytes,
        contract_address: EvmAddress,
        submitter: EvmAddress,
    ) -> bool:
        """
        Check a submitted handle batch the way the ledger verifies encrypted inputs.

        Args:
            handles: Handles in submission order.
            proof: Batch proof returned by `encrypt`.
            contract_address: Contract receiving the input.
            submitter: Account sending the transaction.
        Returns:
            bool: True only if the proof covers exactly these handles and every handle is
            bound to this contract and submitter.
        Assumptions:
            None.
        Raises:
            None.
        Side Effects:
            None.
        """
        if proof != keccak(b"".join(handle.value for handle in handles)):
            return False
        for handle in handles:
            stored = self._ciphertexts.get(handle)
            if stored is None:
                return False
            if stored.contract_address != contract_address or stored.submitter != submitter:
                return False
        return True

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
        with self._lock:
            self.decrypt_calls += 1
        try:
            if public_key_for(private_key=ephemeral_private_key) != ephemeral_public_key:
                raise DecryptionServiceError(service_message="ephemeral key pair mismatch")
        except ValueError as error:
            raise DecryptionServiceError(service_message=str(error)) from error

        permission = DecryptionPermission(
            requester=requester,
            contract_addresses=tuple(contract_addresses),
            ephemeral_public_key=ephemeral_public_key,
            start_timestamp=start_timestamp,
            duration_days=duration_days,
        )
        signer = _recover_signer(
            typed_data=permission.to_typed_data(self._domain),
            signature=signature,
        )
        if signer != requester:
            raise DecryptionServiceError(service_message="signature does not match user address")
        now = int(self._clock.now().timestamp())
        if not permission.is_valid_at(now):
            raise DecryptionServiceError(service_message="permission is expired or not yet valid")

        result: dict[CiphertextHandle, int] = {}
        with self._lock:
            for pair in handle_pairs:
                if pair.contract_address not in permission.contract_addresses:
                    raise DecryptionServiceError(
                        service_message="contract address is not covered by the permission"
                    )
                stored = self._ciphertexts.get(pair.handle)
                if stored is None or stored.contract_address != pair.contract_address:
                    raise DecryptionServiceError(
                        service_message=f"handle {pair.handle.hex} is not bound to contract"
                    )
                if requester not in self._acl.get(pair.handle, set()):
                    raise DecryptionServiceError(
                        service_message=f"user is not allowed to decrypt handle {pair.handle.hex}"
                    )
                result[pair.handle] = stored.value
        log.info("in-memory user decrypt served handles=%s", len(result))
        return result


def _recover_signer(*, typed_data: Mapping[str, object], signature: bytes) -> EvmAddress:
    try:
        signable = encode_typed_data(full_message=dict(typed_data))
        recovered = Account.recover_message(signable, signature=signature)
    except Exception as error:  # noqa: BLE001
        raise DecryptionServiceError(service_message="signature is invalid") from error
    return EvmAddress(str(recovered))
