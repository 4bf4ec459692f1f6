from __future__ import annotations

from pathlib import Path
from typing import Any

from fastapi.testclient import TestClient

from apps.api.main.app import create_app
from wlvault.contexts.sealing.adapters.outbound.security import LocalAccountPermissionSigner
from wlvault.contexts.sealing.domain.entities import EncryptedListingSubmission
from wlvault.shared_kernel.primitives import CiphertextHandle, EvmAddress

_SELLER_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
_BUYER_KEY = "0x59c6995e998f97a5a0044966f0945389dc9e86dae88c7a8412f4603b6b78690d"
_SELLER = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"
_BUYER = "0x70997970C51812dc3A010C7d01b50e0d17dc79C8"
_SECRET_WALLET = "0x3C44CdDdB6a900fa2b585dd299e03d12FA4293BC"
_SECRET_KEY = "0x" + "00" + "".join(f"{index:02x}" for index in range(1, 32))


def _client() -> TestClient:
    """
    Build API client over the test config with in-memory gateway, ledger, and storage.

    Args:
        None.
    Returns:
        TestClient: Client bound to a freshly wired application.
    Assumptions:
        `configs/test/wlvault.yaml` leaves RPC, gateway, and DSN empty.
    Raises:
        FileNotFoundError: If test config is missing.
    Side Effects:
        Reads config YAML.
    """
    config_path = Path(__file__).resolve().parents[4] / "configs" / "test" / "wlvault.yaml"
    app = create_app(environ={"WLVAULT_ENV": "test", "WLVAULT_CONFIG": str(config_path)})
    return TestClient(app)


def _encrypt_payload(**overrides: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "project_name": "Azuki Elementals",
        "quantity": 2,
        "price": "0.5",
        "collateral": "0.05",
        "mint_date": 1_767_225_600,
        "seller": _SELLER,
        "seller_wallet": _SECRET_WALLET,
        "private_key": _SECRET_KEY,
    }
    payload.update(overrides)
    return payload


def _submission_from_response(encrypted: dict[str, Any]) -> EncryptedListingSubmission:
    return EncryptedListingSubmission(
        price_handle=CiphertextHandle.from_hex(encrypted["price_handle"]),
        wallet_handles=tuple(
            CiphertextHandle.from_hex(item) for item in encrypted["wallet_handles"]
        ),
        key_handles=tuple(CiphertextHandle.from_hex(item) for item in encrypted["key_handles"]),
        proof=bytes.fromhex(encrypted["proof"][2:]),
    )


def test_listing_flow_from_encryption_to_buyer_decryption() -> None:
    """
    Verify the full HTTP flow: seal, create on ledger, link, buy, request, sign, decrypt.

    Args:
        None.
    Returns:
        None.
    Assumptions:
        Ledger calls are made by the test directly, as the browser wallet would.
    Raises:
        AssertionError: If any step status or payload differs from the contract.
    Side Effects:
        None.
    """
    with _client() as client:
        ledger = client.app.state.sealing.in_memory_ledger  # type: ignore[attr-defined]
        assert ledger is not None

        encrypted = client.post("/listings/encrypt", json=_encrypt_payload())
        assert encrypted.status_code == 201
        body = encrypted.json()
        assert body["listing"]["id"] == 1
        assert body["listing"]["linked"] is False
        assert body["listing"]["price_minor_units"] == 500_000_000
        assert body["stats"]["handle_count"] == 53
        assert _SECRET_KEY[2:] not in encrypted.text

        receipt = ledger.create_listing(
            seller=EvmAddress(_SELLER),
            project_name="Azuki Elementals",
            quantity=2,
            price_minor_units=500_000_000,
            submission=_submission_from_response(body["encrypted"]),
        )
        linked = client.post("/listings/1/link", json={"receipt": receipt})
        assert linked.status_code == 200
        assert linked.json()["listing"]["on_chain_id"] == 1
        assert linked.json()["listing"]["id_source"] == "event"
        assert linked.json()["already_linked"] is False

        not_purchased = client.post(
            "/listings/1/decryption-requests",
            json={"requester": _BUYER},
        )
        assert not_purchased.status_code == 409
        assert not_purchased.json()["error"]["code"] == "not_purchased"

        ledger.buy_listing(listing_id=1, buyer=EvmAddress(_BUYER))
        challenge = client.post("/listings/1/decryption-requests", json={"requester": _BUYER})
        assert challenge.status_code == 201
        request_id = challenge.json()["request_id"]
        signature = LocalAccountPermissionSigner(private_key=_BUYER_KEY).sign_typed_data(
            requester=EvmAddress(_BUYER),
            typed_data=challenge.json()["typed_data"],
        )

        secrets = client.post(
            f"/listings/1/decryption-requests/{request_id}/signature",
            json={"signature": "0x" + signature.hex()},
        )
        assert secrets.status_code == 200
        assert secrets.json() == {
            "listing_id": 1,
            "seller_wallet": _SECRET_WALLET,
            "private_key": _SECRET_KEY,
        }

        replay = client.post(
            f"/listings/1/decryption-requests/{request_id}/signature",
            json={"signature": "0x" + signature.hex()},
        )
        assert replay.status_code == 404


def test_link_replay_and_listing_queries() -> None:
    with _client() as client:
        ledger = client.app.state.sealing.in_memory_ledger  # type: ignore[attr-defined]
        body = client.post("/listings/encrypt", json=_encrypt_payload()).json()
        receipt = ledger.create_listing(
            seller=EvmAddress(_SELLER),
            project_name="Azuki Elementals",
            quantity=2,
            price_minor_units=500_000_000,
            submission=_submission_from_response(body["encrypted"]),
        )
        client.post("/listings/1/link", json={"receipt": receipt})

        replay = client.post("/listings/1/link", json={"receipt": receipt})
        listed = client.get("/listings")
        fetched = client.get("/listings/1")
        missing = client.get("/listings/404")

    assert replay.status_code == 200
    assert replay.json()["already_linked"] is True
    assert [item["id"] for item in listed.json()] == [1]
    assert fetched.json()["seller"] == _SELLER
    assert missing.status_code == 404
    assert missing.json()["error"]["code"] == "not_found"


def test_unresolved_link_returns_conflict_with_reason() -> None:
    with _client() as client:
        client.post("/listings/encrypt", json=_encrypt_payload())

        response = client.post(
            "/listings/1/link",
            json={"receipt": {"transactionHash": "0x" + "aa" * 32, "status": 1, "logs": []}},
        )
        fetched = client.get("/listings/1")

    assert response.status_code == 409
    assert response.json()["error"]["code"] == "reconciliation_unresolved"
    assert response.json()["error"]["details"]["reason"] == "receipt has no logs"
    assert fetched.json()["pending_tx_hash"] == "0x" + "aa" * 32


def test_encrypt_validation_errors_use_canonical_payload() -> None:
    with _client() as client:
        missing_field = client.post(
            "/listings/encrypt",
            json={key: value for key, value in _encrypt_payload().items() if key != "seller"},
        )
        bad_price = client.post("/listings/encrypt", json=_encrypt_payload(price="0"))
        bad_key = client.post("/listings/encrypt", json=_encrypt_payload(private_key="0x1234"))

    assert missing_field.status_code == 422
    assert missing_field.json()["error"]["details"]["errors"] == [
        {"path": "body.seller", "code": "required", "message": "Field required"}
    ]
    assert bad_price.status_code == 422
    assert bad_price.json()["error"]["details"] == {"field": "price"}
    assert bad_key.status_code == 422
    assert bad_key.json()["error"]["code"] == "validation_error"


def test_health_reports_env_name() -> None:
    with _client() as client:
        response = client.get("/health")

    assert response.json() == {"status": "ok", "env": "test"}
