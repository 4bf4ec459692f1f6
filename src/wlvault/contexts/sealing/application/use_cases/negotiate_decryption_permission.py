from __future__ import annotations

import logging
import re
import uuid
from datetime import timezone
from typing import Any, Callable, Mapping, Sequence

from wlvault.contexts.sealing.application.ports import (
    EphemeralKeyPairFactory,
    FheDecryptionService,
    HandleContractPair,
    PermissionSigner,
    PermissionSigningDeclined,
    SealingClock,
)
from wlvault.contexts.sealing.domain.entities import (
    DecryptionPermission,
    DecryptionRequest,
    DecryptionRequestState,
    PermissionDomain,
)
from wlvault.contexts.sealing.domain.errors import (
    DecryptionRequestTransitionError,
    DecryptionServiceError,
    PermissionDeniedError,
    SealingOperationError,
    ValidationError,
)
from wlvault.shared_kernel.primitives import CiphertextHandle, EvmAddress

log = logging.getLogger(__name__)

_SIGNATURE_HEX_PATTERN = re.compile(r"^0x[0-9a-fA-F]{130}$")
_SIGNATURE_BYTE_LENGTH = 65


class DecryptionPermissionNegotiator:
    """
    DecryptionPermissionNegotiator - drive one decryption request through
    `prepared -> signed -> submitted`, failing terminally on decline or service rejection.

    On failure the raised error carries the failed snapshot in `failed_request`.

    Related:
      - src/wlvault/contexts/sealing/domain/entities/decryption_permission.py
      - src/wlvault/contexts/sealing/application/ports/fhe_decryption_service.py
      - src/wlvault/contexts/sealing/application/ports/permission_signer.py
      - src/wlvault/contexts/sealing/application/use_cases/decrypt_purchased_secrets.py
    """

    def __init__(
        self,
        *,
        decryption_service: FheDecryptionService,
        key_pair_factory: EphemeralKeyPairFactory,
        clock: SealingClock,
        domain: PermissionDomain,
        duration_days: int = 1,
        request_id_factory: Callable[[], str] | None = None,
    ) -> None:
        """
        Initialize negotiator dependencies.

        Args:
            decryption_service: Decryption service port.
            key_pair_factory: Ephemeral key pair factory port.
            clock: UTC clock port for permission start timestamps.
            domain: EIP-712 domain permissions are signed under.
            duration_days: Permission validity in whole days.
            request_id_factory: Optional request id generator (defaults to uuid4 hex).
        Returns:
            None.
        Assumptions:
            Dependencies are stateless or safe to share between requests.
        Raises:
            ValueError: If dependencies are missing or duration is not positive.
        Side Effects:
            None.
        """
        if decryption_service is None:  # type: ignore[truthy-bool]
            raise ValueError("DecryptionPermissionNegotiator requires decryption_service")
        if key_pair_factory is None:  # type: ignore[truthy-bool]
            raise ValueError("DecryptionPermissionNegotiator requires key_pair_factory")
        if clock is None:  # type: ignore[truthy-bool]
            raise ValueError("DecryptionPermissionNegotiator requires clock")
        if domain is None:  # type: ignore[truthy-bool]
            raise ValueError("DecryptionPermissionNegotiator requires domain")
        if duration_days <= 0:
            raise ValueError("DecryptionPermissionNegotiator duration_days must be > 0")
        self._decryption_service = decryption_service
        self._key_pair_factory = key_pair_factory
        self._clock = clock
        self._domain = domain
        self._duration_days = duration_days
        self._request_id_factory = request_id_factory or _new_request_id

    def prepare(
        self,
        *,
        requester: EvmAddress,
        contract_address: EvmAddress,
    ) -> DecryptionRequest:
        """
        Create a fresh `prepared` request with a new key pair and current start timestamp.

        Args:
            requester: Address that must sign the permission.
            contract_address: Ledger contract the handles are bound to.
        Returns:
            DecryptionRequest: Request in `prepared` state.
        Assumptions:
            Clock returns timezone-aware UTC; the timestamp is truncated to whole seconds.
        Raises:
            ValueError: If clock returns a naive datetime.
        Side Effects:
            Generates one ephemeral key pair.
        """
        now = self._clock.now()
        if now.tzinfo is None or now.utcoffset() is None:
            raise ValueError("SealingClock.now() must return timezone-aware datetime")
        key_pair = self._key_pair_factory.generate()
        permission = DecryptionPermission(
            requester=requester,
            contract_addresses=(contract_address,),
            ephemeral_public_key=key_pair.public_key,
            start_timestamp=int(now.astimezone(timezone.utc).timestamp()),
            duration_days=self._duration_days,
        )
        request = DecryptionRequest(
            request_id=self._request_id_factory(),
            permission=permission,
            key_pair=key_pair,
        )
        log.info(
            "decryption request prepared request_id=%s requester=%s start=%s days=%s",
            request.request_id,
            requester,
            permission.start_timestamp,
            permission.duration_days,
        )
        return request

    def typed_data(self, *, request: DecryptionRequest) -> dict[str, Any]:
        return request.permission.to_typed_data(self._domain)

    def sign(self, *, request: DecryptionRequest, signer: PermissionSigner) -> DecryptionRequest:
        """
        Obtain the requester's signature over the exact typed data and move to `signed`.

        Args:
            request: Request in `prepared` state.
            signer: Requester signing capability.
        Returns:
            DecryptionRequest: Request in `signed` state.
        Assumptions:
            Signer identity is verified by the decryption service, not here.
        Raises:
            DecryptionRequestTransitionError: If request is not `prepared`.
            PermissionDeniedError: If signer declines, fails, or returns a malformed signature.
        Side Effects:
            Calls the signer once.
        """
        if request.state is not DecryptionRequestState.PREPARED:
            raise DecryptionRequestTransitionError(
                request_id=request.request_id,
                current_state=request.state.value,
                target_state=DecryptionRequestState.SIGNED.value,
            )

        try:
            raw_signature = signer.sign_typed_data(
                requester=request.permission.requester,
                typed_data=self.typed_data(request=request),
            )
        except PermissionSigningDeclined as error:
            raise _fail(
                request=request,
                error=PermissionDeniedError(reason="declined", request_id=request.request_id),
            ) from error
        except Exception as error:  # noqa: BLE001
            log.exception("permission signer failed request_id=%s", request.request_id)
            raise _fail(
                request=request,
                error=PermissionDeniedError(
                    reason="signer_failed",
                    request_id=request.request_id,
                ),
            ) from error

        signature = _parse_signature(raw_signature)
        if signature is None:
            raise _fail(
                request=request,
                error=PermissionDeniedError(
                    reason="malformed_signature",
                    request_id=request.request_id,
                ),
            )
        signed = request.transition_to(
            next_state=DecryptionRequestState.SIGNED,
            signature=signature,
        )
        log.info("decryption request signed request_id=%s", request.request_id)
        return signed

    def submit(
        self,
        *,
        request: DecryptionRequest,
        handles: Sequence[CiphertextHandle],
    ) -> tuple[DecryptionRequest, Mapping[CiphertextHandle, int]]:
        """
        Send handles with exactly the signed permission values to the decryption service.

        Args:
            request: Request in `signed` state.
            handles: Ciphertext handles to decrypt.
        Returns:
            tuple[DecryptionRequest, Mapping[CiphertextHandle, int]]: `submitted` snapshot and
            plaintext value per handle.
        Assumptions:
            Every handle is bound to the first (only) contract in the permission.
        Raises:
            DecryptionRequestTransitionError: If request is not `signed`.
            ValidationError: If no handles were given.
            DecryptionServiceError: If the service rejects the permission; never retried.
        Side Effects:
            One decryption service call.
        """
        if request.state is not DecryptionRequestState.SIGNED:
            raise DecryptionRequestTransitionError(
                request_id=request.request_id,
                current_state=request.state.value,
                target_state=DecryptionRequestState.SUBMITTED.value,
            )
        if not handles:
            raise ValidationError(field_name="handles", message="handles must be non-empty")

        permission = request.permission
        contract = permission.contract_addresses[0]
        signature = permission.signature
        if signature is None:
            raise ValueError("signed request must carry a signature")
        try:
            cleartexts = self._decryption_service.user_decrypt(
                handle_pairs=tuple(
                    HandleContractPair(handle=handle, contract_address=contract)
                    for handle in handles
                ),
                ephemeral_private_key=request.key_pair.private_key,
                ephemeral_public_key=request.key_pair.public_key,
                signature=signature,
                contract_addresses=permission.contract_addresses,
                requester=permission.requester,
                start_timestamp=permission.start_timestamp,
                duration_days=permission.duration_days,
            )
        except DecryptionServiceError as error:
            raise _fail(request=request, error=error) from error

        submitted = request.transition_to(next_state=DecryptionRequestState.SUBMITTED)
        log.info(
            "decryption request submitted request_id=%s handles=%s",
            request.request_id,
            len(handles),
        )
        return submitted, cleartexts

    def negotiate(
        self,
        *,
        requester: EvmAddress,
        contract_address: EvmAddress,
        signer: PermissionSigner,
        handles: Sequence[CiphertextHandle],
    ) -> Mapping[CiphertextHandle, int]:
        request = self.prepare(requester=requester, contract_address=contract_address)
        signed = self.sign(request=request, signer=signer)
        _, cleartexts = self.submit(request=signed, handles=handles)
        return cleartexts


def _fail(*, request: DecryptionRequest, error: SealingOperationError) -> SealingOperationError:
    failed = request.transition_to(
        next_state=DecryptionRequestState.FAILED,
        failure_reason=error.message,
    )
    log.info(
        "decryption request failed request_id=%s code=%s",
        request.request_id,
        error.code,
    )
    error.failed_request = failed
    return error


def _parse_signature(raw_signature: object) -> bytes | None:
    if isinstance(raw_signature, (bytes, bytearray)):
        if len(raw_signature) != _SIGNATURE_BYTE_LENGTH:
            return None
        return bytes(raw_signature)
    if isinstance(raw_signature, str):
        stripped = raw_signature.strip()
        if not _SIGNATURE_HEX_PATTERN.match(stripped):
            return None
        return bytes.fromhex(stripped[2:])
    return None


def _new_request_id() -> str:
    return uuid.uuid4().hex
