from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Protocol, Sequence, cast

import requests

from wlvault.contexts.sealing.adapters.outbound.fhe.wire_normalization import (
    coerce_wire_bytes,
    normalize_cleartext_value,
    normalize_encryption_result,
    normalize_handle,
)
from wlvault.contexts.sealing.adapters.outbound.security import open_sealed
from wlvault.contexts.sealing.application.ports import (
    EncryptionResult,
    FheDecryptionService,
    FheEncryptionService,
    HandleContractPair,
)
from wlvault.contexts.sealing.domain.entities import PlaintextSlot
from wlvault.contexts.sealing.domain.errors import DecryptionServiceError, EncryptionServiceError
from wlvault.shared_kernel.primitives import CiphertextHandle, EvmAddress

log = logging.getLogger(__name__)

_ENCRYPT_PATH = "/v1/encrypt"
_USER_DECRYPT_PATH = "/v1/user-decrypt"


@dataclass(frozen=True, slots=True)
class HttpFheGatewayConfig:
    """
    HttpFheGatewayConfig - runtime settings for the encryption/decryption relayer client.

    Related:
      - src/wlvault/platform/config/wlvault_runtime.py
      - apps/api/wiring/modules/sealing.py
    """

    base_url: str
    timeout_s: float

    def __post_init__(self) -> None:
        normalized = self.base_url.strip()
        if not normalized.startswith(("https://", "http://")):
            raise ValueError("HttpFheGatewayConfig.base_url must start with http:// or https://")
        if self.timeout_s <= 0:
            raise ValueError("HttpFheGatewayConfig.timeout_s must be > 0")
        object.__setattr__(self, "base_url", normalized.rstrip("/"))


class GatewayHttpResponse(Protocol):
    status_code: int

    def json(self) -> Any:
        ...

    @property
    def text(self) -> str:
        ...


class GatewayHttpSession(Protocol):
    def post(
        self,
        url: str,
        *,
        json: Mapping[str, Any],
        timeout: float,
    ) -> GatewayHttpResponse:
        ...

    def close(self) -> None:
        ...


class HttpFheGatewayClient(FheEncryptionService, FheDecryptionService):
    """
    HttpFheGatewayClient - explicitly constructed relayer client shared by the app process.

    One session is created at wiring time and closed at shutdown; calls are never retried,
    because a repeated encryption or decryption request is a new remote side effect.

    Related:
      - src/wlvault/contexts/sealing/application/ports/fhe_encryption_service.py
      - src/wlvault/contexts/sealing/application/ports/fhe_decryption_service.py
      - src/wlvault/contexts/sealing/adapters/outbound/fhe/wire_normalization.py
      - apps/api/wiring/modules/sealing.py
    """

    def __init__(
        self,
        *,
        config: HttpFheGatewayConfig,
        session: GatewayHttpSession | None = None,
    ) -> None:
        """
        Initialize relayer client.

        Args:
            config: Validated gateway config.
            session: Optional injected HTTP session for tests.
        Returns:
            None.
        Assumptions:
            Client instance lives as long as the app and is closed once.
        Raises:
            ValueError: If config is missing.
        Side Effects:
            Creates `requests.Session` when no custom session is injected.
        """
        if config is None:  # type: ignore[truthy-bool]
            raise ValueError("HttpFheGatewayClient requires config")
        self._config = config
        self._session = (
            session
            if session is not None
            else cast(GatewayHttpSession, requests.Session())
        )

    def close(self) -> None:
        self._session.close()

    def encrypt(
        self,
        *,
        contract_address: EvmAddress,
        submitter: EvmAddress,
        slots: Sequence[PlaintextSlot],
    ) -> EncryptionResult:
        payload = {
            "contractAddress": contract_address.checksum,
            "userAddress": submitter.checksum,
            "values": [{"bits": slot.bit_width, "value": str(slot.value)} for slot in slots],
        }
        try:
            body = self._post(path=_ENCRYPT_PATH, payload=payload)
        except _GatewayCallError as error:
            raise EncryptionServiceError(service_message=error.service_message) from error
        return normalize_encryption_result(body)

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
        Request user decryption and open the per-handle values sealed to the ephemeral key.

        Args:
            handle_pairs: Handles with their bound contract.
            ephemeral_private_key: Used locally to open sealed values; never sent.
            ephemeral_public_key: Key the relayer seals results to.
            signature: Requester signature over the permission.
            contract_addresses: Signed contract list.
            requester: Signing address.
            start_timestamp: Signed validity start.
            duration_days: Signed validity duration.
        Returns:
            Mapping[CiphertextHandle, int]: Plaintext value per handle.
        Assumptions:
            Response is `{"results": [{"handle": ..., "sealedValue": ...}]}` with big-endian
            value bytes sealed by `seal_to_public_key`.
        Raises:
            DecryptionServiceError: On rejection, transport failure, or malformed response.
        Side Effects:
            One HTTP POST.
        """
        payload = {
            "handleContractPairs": [
                {"handle": pair.handle.hex, "contractAddress": pair.contract_address.checksum}
                for pair in handle_pairs
            ],
            "publicKey": "0x" + ephemeral_public_key.hex(),
            "signature": "0x" + signature.hex(),
            "contractAddresses": [item.checksum for item in contract_addresses],
            "userAddress": requester.checksum,
            "startTimestamp": str(start_timestamp),
            "durationDays": str(duration_days),
        }
        try:
            body = self._post(path=_USER_DECRYPT_PATH, payload=payload)
        except _GatewayCallError as error:
            raise DecryptionServiceError(service_message=error.service_message) from error
        return _open_decryption_results(body=body, private_key=ephemeral_private_key)

    def _post(self, *, path: str, payload: Mapping[str, Any]) -> Any:
        url = f"{self._config.base_url}{path}"
        try:
            response = self._session.post(url, json=payload, timeout=self._config.timeout_s)
        except requests.Timeout as error:
            log.exception("fhe gateway call timed out path=%s", path)
            raise _GatewayCallError(service_message="request timed out") from error
        except requests.RequestException as error:
            log.exception("fhe gateway call failed path=%s", path)
            raise _GatewayCallError(service_message=str(error)) from error

        if response.status_code != 200:
            message = _error_message(response=response)
            log.warning(
                "fhe gateway rejected call path=%s status_code=%s message=%s",
                path,
                response.status_code,
                message,
            )
            raise _GatewayCallError(service_message=message)
        try:
            return response.json()
        except ValueError as error:
            raise _GatewayCallError(service_message="response is not valid JSON") from error


class _GatewayCallError(Exception):
    def __init__(self, *, service_message: str) -> None:
        super().__init__(service_message)
        self.service_message = service_message


def _error_message(*, response: GatewayHttpResponse) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, Mapping):
        for key in ("message", "error"):
            value = body.get(key)
            if isinstance(value, str) and value.strip():
                return value.strip()
            if isinstance(value, Mapping) and isinstance(value.get("message"), str):
                return str(value["message"]).strip()
    text = response.text.strip()
    if text:
        return text[:500]
    return f"HTTP {response.status_code}"


def _open_decryption_results(*, body: Any, private_key: bytes) -> dict[CiphertextHandle, int]:
    if not isinstance(body, Mapping) or not isinstance(body.get("results"), list):
        raise DecryptionServiceError(service_message="decryption response has no results array")
    cleartexts: dict[CiphertextHandle, int] = {}
    for index, item in enumerate(body["results"]):
        if not isinstance(item, Mapping):
            raise DecryptionServiceError(
                service_message=f"malformed decryption result at index {index}"
            )
        try:
            handle = normalize_handle(item.get("handle"))
            if "sealedValue" in item:
                opened = open_sealed(
                    private_key=private_key,
                    sealed=coerce_wire_bytes(item["sealedValue"]),
                )
                value = int.from_bytes(opened, byteorder="big", signed=False)
            else:
                value = normalize_cleartext_value(item.get("value"))
        except ValueError as error:
            raise DecryptionServiceError(
                service_message=f"malformed decryption result at index {index}: {error}"
            ) from error
        cleartexts[handle] = value
    return cleartexts
