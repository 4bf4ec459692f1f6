from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any

from wlvault.contexts.sealing.domain.errors import DecryptionRequestTransitionError
from wlvault.shared_kernel.primitives import EvmAddress

SECONDS_PER_DAY = 86_400
PERMISSION_PRIMARY_TYPE = "UserDecryptRequestVerification"
_SIGNATURE_BYTE_LENGTH = 65

_EIP712_DOMAIN_FIELDS = [
    {"name": "name", "type": "string"},
    {"name": "version", "type": "string"},
    {"name": "chainId", "type": "uint256"},
    {"name": "verifyingContract", "type": "address"},
]
_PERMISSION_FIELDS = [
    {"name": "publicKey", "type": "bytes"},
    {"name": "contractAddresses", "type": "address[]"},
    {"name": "startTimestamp", "type": "uint256"},
    {"name": "durationDays", "type": "uint256"},
    {"name": "extraData", "type": "bytes"},
]


@dataclass(frozen=True, slots=True)
class PermissionDomain:
    """
    PermissionDomain - EIP-712 domain that scopes decryption permissions to one verifier.

    Related:
      - src/wlvault/platform/config/wlvault_runtime.py
    """

    chain_id: int
    verifying_contract: EvmAddress
    name: str = "Decryption"
    version: str = "1"

    def __post_init__(self) -> None:
        if self.chain_id <= 0:
            raise ValueError(f"PermissionDomain.chain_id must be > 0, got {self.chain_id}")
        if not self.name.strip() or not self.version.strip():
            raise ValueError("PermissionDomain name and version must be non-empty")

    def to_payload(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "version": self.version,
            "chainId": self.chain_id,
            "verifyingContract": self.verifying_contract.checksum,
        }


@dataclass(frozen=True, slots=True)
class EphemeralKeyPair:
    """
    EphemeralKeyPair - single-use key pair that shapes one decryption permission.

    The private half is excluded from `repr` and is never persisted or logged.
    """

    public_key: bytes
    private_key: bytes = field(repr=False)

    def __post_init__(self) -> None:
        if not self.public_key:
            raise ValueError("EphemeralKeyPair.public_key must be non-empty")
        if not self.private_key:
            raise ValueError("EphemeralKeyPair.private_key must be non-empty")


@dataclass(frozen=True, slots=True)
class DecryptionPermission:
    """
    DecryptionPermission - time-boxed, contract-bound permission a requester signs.

    Related:
      - src/wlvault/contexts/sealing/application/use_cases/negotiate_decryption_permission.py
      - src/wlvault/contexts/sealing/adapters/outbound/security/local_account_permission_signer.py
      - src/wlvault/contexts/sealing/adapters/outbound/fhe/in_memory_fhe_gateway.py
    """

    requester: EvmAddress
    contract_addresses: tuple[EvmAddress, ...]
    ephemeral_public_key: bytes
    start_timestamp: int
    duration_days: int
    signature: bytes | None = None

    def __post_init__(self) -> None:
        """
        Validate permission invariants.

        Args:
            None.
        Returns:
            None.
        Assumptions:
            Timestamps are unix seconds; duration is whole days.
        Raises:
            ValueError: If contract list is empty, key is empty, or time bounds are invalid.
        Side Effects:
            Normalizes contract address sequence to tuple.
        """
        object.__setattr__(self, "contract_addresses", tuple(self.contract_addresses))
        if not self.contract_addresses:
            raise ValueError("DecryptionPermission.contract_addresses must be non-empty")
        if not self.ephemeral_public_key:
            raise ValueError("DecryptionPermission.ephemeral_public_key must be non-empty")
        if self.start_timestamp < 0:
            raise ValueError("DecryptionPermission.start_timestamp must be >= 0")
        if self.duration_days <= 0:
            raise ValueError("DecryptionPermission.duration_days must be > 0")
        if self.signature is not None and len(self.signature) != _SIGNATURE_BYTE_LENGTH:
            raise ValueError(
                f"DecryptionPermission.signature must be {_SIGNATURE_BYTE_LENGTH} bytes"
            )

    @property
    def expires_at(self) -> int:
        return self.start_timestamp + self.duration_days * SECONDS_PER_DAY

    def is_valid_at(self, timestamp: int) -> bool:
        """
        Check the half-open validity window `[start, start + duration)`.
        """
        return self.start_timestamp <= timestamp < self.expires_at

    def with_signature(self, signature: bytes) -> DecryptionPermission:
        return replace(self, signature=bytes(signature))

    def to_typed_data(self, domain: PermissionDomain) -> dict[str, Any]:
        """
        Render the exact EIP-712 message handed to the requester's signer.

        Args:
            domain: Verifier domain the signature is scoped to.
        Returns:
            dict[str, Any]: Full typed-data payload (`types`, `primaryType`, `domain`, `message`).
        Assumptions:
            Byte fields are `0x` hex strings so the payload is JSON-serializable as-is.
        Raises:
            None.
        Side Effects:
            None.
        """
        return {
            "types": {
                "EIP712Domain": [dict(item) for item in _EIP712_DOMAIN_FIELDS],
                PERMISSION_PRIMARY_TYPE: [dict(item) for item in _PERMISSION_FIELDS],
            },
            "primaryType": PERMISSION_PRIMARY_TYPE,
            "domain": domain.to_payload(),
            "message": {
                "publicKey": "0x" + self.ephemeral_public_key.hex(),
                "contractAddresses": [item.checksum for item in self.contract_addresses],
                "startTimestamp": self.start_timestamp,
                "durationDays": self.duration_days,
                "extraData": "0x00",
            },
        }


class DecryptionRequestState(str, Enum):
    PREPARED = "prepared"
    SIGNED = "signed"
    SUBMITTED = "submitted"
    FAILED = "failed"


_ALLOWED_STATE_TRANSITIONS: dict[DecryptionRequestState, frozenset[DecryptionRequestState]] = {
    DecryptionRequestState.PREPARED: frozenset(
        {DecryptionRequestState.SIGNED, DecryptionRequestState.FAILED}
    ),
    DecryptionRequestState.SIGNED: frozenset(
        {DecryptionRequestState.SUBMITTED, DecryptionRequestState.FAILED}
    ),
    DecryptionRequestState.SUBMITTED: frozenset(),
    DecryptionRequestState.FAILED: frozenset(),
}


@dataclass(frozen=True, slots=True)
class DecryptionRequest:
    """
    DecryptionRequest - immutable snapshot of one in-flight permission negotiation.

    Each transition returns a new snapshot; `submitted` and `failed` are terminal, so a
    declined or rejected request needs a fresh `prepared` one with a new timestamp.

    Related:
      - src/wlvault/contexts/sealing/application/use_cases/negotiate_decryption_permission.py
      - src/wlvault/contexts/sealing/application/use_cases/pending_decryption_requests.py
    """

    request_id: str
    permission: DecryptionPermission
    key_pair: EphemeralKeyPair
    state: DecryptionRequestState = DecryptionRequestState.PREPARED
    failure_reason: str | None = None

    def __post_init__(self) -> None:
        if not self.request_id.strip():
            raise ValueError("DecryptionRequest.request_id must be non-empty")
        if self.permission.ephemeral_public_key != self.key_pair.public_key:
            raise ValueError("DecryptionRequest permission must carry the key pair public key")
        if self.state is DecryptionRequestState.FAILED and not self.failure_reason:
            raise ValueError("DecryptionRequest in failed state requires failure_reason")
        if self.state in (DecryptionRequestState.SIGNED, DecryptionRequestState.SUBMITTED):
            if self.permission.signature is None:
                raise ValueError(
                    f"DecryptionRequest in {self.state.value} state requires signature"
                )

    @property
    def is_terminal(self) -> bool:
        return not _ALLOWED_STATE_TRANSITIONS[self.state]

    def transition_to(
        self,
        *,
        next_state: DecryptionRequestState,
        signature: bytes | None = None,
        failure_reason: str | None = None,
    ) -> DecryptionRequest:
        """
        Move the request to the next negotiation state.

        Args:
            next_state: Target state.
            signature: Requester signature, required when moving to `signed`.
            failure_reason: Non-secret reason text, required when moving to `failed`.
        Returns:
            DecryptionRequest: New snapshot in `next_state`.
        Assumptions:
            Graph is `prepared -> signed -> submitted` with `failed` reachable from both
            non-terminal states.
        Raises:
            DecryptionRequestTransitionError: If the move is not in the transition graph.
            ValueError: If the target state's required payload is missing.
        Side Effects:
            None.
        """
        if next_state not in _ALLOWED_STATE_TRANSITIONS[self.state]:
            raise DecryptionRequestTransitionError(
                request_id=self.request_id,
                current_state=self.state.value,
                target_state=next_state.value,
            )

        permission = self.permission
        if next_state is DecryptionRequestState.SIGNED:
            if signature is None:
                raise ValueError("transition to signed requires signature")
            permission = permission.with_signature(signature)
        if next_state is DecryptionRequestState.FAILED:
            if failure_reason is None or not failure_reason.strip():
                raise ValueError("transition to failed requires failure_reason")

        return DecryptionRequest(
            request_id=self.request_id,
            permission=permission,
            key_pair=self.key_pair,
            state=next_state,
            failure_reason=failure_reason if next_state is DecryptionRequestState.FAILED else None,
        )
