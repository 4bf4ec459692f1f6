from __future__ import annotations

from typing import Any, Mapping

import pytest
import requests

from wlvault.contexts.sealing.adapters.outbound.fhe import (
    HttpFheGatewayClient,
    HttpFheGatewayConfig,
)
from wlvault.contexts.sealing.adapters.outbound.security import (
    X25519EphemeralKeyPairFactory,
    seal_to_public_key,
)
from wlvault.contexts.sealing.application.ports import HandleContractPair
from wlvault.contexts.sealing.domain.entities import PlaintextSlot
from wlvault.contexts.sealing.domain.errors import DecryptionServiceError, EncryptionServiceError
from wlvault.shared_kernel.primitives import CiphertextHandle, EvmAddress

_CONTRACT = EvmAddress("0x756cB08969c95D9c9178047304A4b1E316E4c8d7")
_USER = EvmAddress("0x70997970C51812dc3A010C7d01b50e0d17dc79C8")
_HANDLE = CiphertextHandle(b"\x07" * 32)


class _ResponseStub:
    """
    Minimal HTTP response stub exposing status, JSON body, and text.
    """

    def __init__(self, *, status_code: int, body: Any = None, text: str = "") -> None:
        self.status_code = status_code
        self._body = body
        self._text = text

    def json(self) -> Any:
        if self._body is None:
            raise ValueError("no json")
        return self._body

    @property
    def text(self) -> str:
        return self._text


class _SessionStub:
    """
    HTTP session stub recording posted payloads and replaying one response or error.
    """

    def __init__(
        self,
        *,
        response: _ResponseStub | None = None,
        error: Exception | None = None,
    ) -> None:
        """
        Configure replayed outcome.

        Args:
            response: Response returned by `post`.
            error: Exception raised by `post` instead of returning.
        Returns:
            None.
        Assumptions:
            Exactly one of `response` or `error` is set.
        Raises:
            None.
        Side Effects:
            None.
        """
        self._response = response
        self._error = error
        self.posts: list[tuple[str, Mapping[str, Any], float]] = []
        self.closed = False

    def post(self, url: str, *, json: Mapping[str, Any], timeout: float) -> _ResponseStub:
        self.posts.append((url, json, timeout))
        if self._error is not None:
            raise self._error
        assert self._response is not None
        return self._response

    def close(self) -> None:
        self.closed = True


def _client(session: _SessionStub) -> HttpFheGatewayClient:
    return HttpFheGatewayClient(
        config=HttpFheGatewayConfig(base_url="https://relayer.example/", timeout_s=5),
        session=session,
    )


def test_encrypt_posts_slots_once_and_normalizes_buffer_handles() -> None:
    """
    Verify encrypt sends all slots in one request and normalizes Node buffer handles.

    Args:
        None.
    Returns:
        None.
    Assumptions:
        Slot values are sent as decimal strings with their bit widths.
    Raises:
        AssertionError: If request payload or normalized result differ.
    Side Effects:
        None.
    """
    session = _SessionStub(
        response=_ResponseStub(
            status_code=200,
            body={
                "handles": [{"type": "Buffer", "data": [7] * 32}],
                "inputProof": "0xbeef",
            },
        )
    )

    result = _client(session).encrypt(
        contract_address=_CONTRACT,
        submitter=_USER,
        slots=(PlaintextSlot(bit_width=64, value=500_000_000),),
    )

    assert result.handles == (_HANDLE,)
    assert result.proof == b"\xbe\xef"
    url, payload, timeout = session.posts[0]
    assert url == "https://relayer.example/v1/encrypt"
    assert timeout == 5
    assert payload == {
        "contractAddress": _CONTRACT.checksum,
        "userAddress": _USER.checksum,
        "values": [{"bits": 64, "value": "500000000"}],
    }


def test_encrypt_surfaces_service_message_verbatim_without_retry() -> None:
    session = _SessionStub(
        response=_ResponseStub(status_code=400, body={"message": "Invalid contract address"})
    )

    with pytest.raises(EncryptionServiceError) as error_info:
        _client(session).encrypt(
            contract_address=_CONTRACT,
            submitter=_USER,
            slots=(PlaintextSlot(bit_width=8, value=1),),
        )

    assert error_info.value.service_message == "Invalid contract address"
    assert len(session.posts) == 1


def test_encrypt_maps_timeout_to_encryption_service_error() -> None:
    session = _SessionStub(error=requests.Timeout("read timed out"))

    with pytest.raises(EncryptionServiceError, match="request timed out"):
        _client(session).encrypt(
            contract_address=_CONTRACT,
            submitter=_USER,
            slots=(PlaintextSlot(bit_width=8, value=1),),
        )


def test_user_decrypt_opens_sealed_values_with_ephemeral_key() -> None:
    """
    Verify sealed per-handle values are opened locally and the private key is never sent.

    Args:
        None.
    Returns:
        None.
    Assumptions:
        Relayer seals big-endian value bytes to the permission public key.
    Raises:
        AssertionError: If decrypted value differs or private key leaks into the payload.
    Side Effects:
        Uses OS CSPRNG.
    """
    key_pair = X25519EphemeralKeyPairFactory().generate()
    sealed = seal_to_public_key(public_key=key_pair.public_key, plaintext=b"\x0a")
    session = _SessionStub(
        response=_ResponseStub(
            status_code=200,
            body={"results": [{"handle": _HANDLE.hex, "sealedValue": "0x" + sealed.hex()}]},
        )
    )

    cleartexts = _client(session).user_decrypt(
        handle_pairs=(HandleContractPair(handle=_HANDLE, contract_address=_CONTRACT),),
        ephemeral_private_key=key_pair.private_key,
        ephemeral_public_key=key_pair.public_key,
        signature=b"\x01" * 65,
        contract_addresses=(_CONTRACT,),
        requester=_USER,
        start_timestamp=1_700_000_000,
        duration_days=1,
    )

    assert cleartexts == {_HANDLE: 10}
    url, payload, _ = session.posts[0]
    assert url == "https://relayer.example/v1/user-decrypt"
    assert payload["publicKey"] == "0x" + key_pair.public_key.hex()
    assert payload["startTimestamp"] == "1700000000"
    assert key_pair.private_key.hex() not in str(payload)


def test_user_decrypt_surfaces_rejection_message() -> None:
    session = _SessionStub(
        response=_ResponseStub(status_code=403, body={"error": {"message": "Permission expired"}})
    )

    with pytest.raises(DecryptionServiceError) as error_info:
        _client(session).user_decrypt(
            handle_pairs=(HandleContractPair(handle=_HANDLE, contract_address=_CONTRACT),),
            ephemeral_private_key=b"\x01" * 32,
            ephemeral_public_key=b"\x02" * 32,
            signature=b"\x01" * 65,
            contract_addresses=(_CONTRACT,),
            requester=_USER,
            start_timestamp=0,
            duration_days=1,
        )

    assert error_info.value.service_message == "Permission expired"


def test_close_closes_owned_session() -> None:
    session = _SessionStub(response=_ResponseStub(status_code=200, body={}))

    _client(session).close()

    assert session.closed


def test_gateway_config_rejects_non_http_url() -> None:
    with pytest.raises(ValueError, match="must start with http"):
        HttpFheGatewayConfig(base_url="relayer.example", timeout_s=5)
