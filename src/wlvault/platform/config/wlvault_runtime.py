"""
Runtime config loader for the sealed listings backend.

Related: apps.api.wiring.modules.sealing,
  apps.api.wiring.modules.listings,
  wlvault.contexts.sealing.adapters.outbound.fhe.http_fhe_gateway_client
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

import yaml

_ENV_NAME_KEY = "WLVAULT_ENV"
_CONFIG_PATH_KEY = "WLVAULT_CONFIG"
_ALLOWED_ENVS = ("dev", "prod", "test")

_LEDGER_CONTRACT_ENV_KEY = "WLVAULT_LEDGER_CONTRACT_ADDRESS"
_CHAIN_ID_ENV_KEY = "WLVAULT_CHAIN_ID"
_RPC_URL_ENV_KEY = "WLVAULT_RPC_URL"
_FHE_GATEWAY_URL_ENV_KEY = "WLVAULT_FHE_GATEWAY_URL"
_FHE_TIMEOUT_ENV_KEY = "WLVAULT_FHE_TIMEOUT_S"
_VERIFIER_ENV_KEY = "WLVAULT_DECRYPTION_VERIFIER_ADDRESS"
_DURATION_DAYS_ENV_KEY = "WLVAULT_PERMISSION_DURATION_DAYS"
_PENDING_TTL_ENV_KEY = "WLVAULT_PENDING_REQUEST_TTL_S"
_PG_DSN_ENV_KEY = "WLVAULT_PG_DSN"

_ADDRESS_PATTERN = re.compile(r"^0x[0-9a-fA-F]{40}$")

_DEFAULT_CHAIN_ID = 11155111
_DEFAULT_FHE_TIMEOUT_S = 30.0
_DEFAULT_PERMISSION_DURATION_DAYS = 1
_DEFAULT_PENDING_REQUEST_TTL_S = 300
_DEFAULT_VERIFIER_ADDRESS = "0x0000000000000000000000000000000000000000"


@dataclass(frozen=True, slots=True)
class WlvaultRuntimeConfig:
    """
    Immutable runtime config for encryption, decryption, ledger, and storage adapters.

    Related: apps.api.wiring.modules.sealing,
      apps.api.wiring.modules.listings
    """

    env_name: str
    ledger_contract_address: str
    chain_id: int = _DEFAULT_CHAIN_ID
    rpc_url: str = ""
    fhe_gateway_url: str = ""
    fhe_timeout_s: float = _DEFAULT_FHE_TIMEOUT_S
    decryption_verifier_address: str = _DEFAULT_VERIFIER_ADDRESS
    permission_duration_days: int = _DEFAULT_PERMISSION_DURATION_DAYS
    pending_request_ttl_s: int = _DEFAULT_PENDING_REQUEST_TTL_S
    postgres_dsn: str = ""

    def __post_init__(self) -> None:
        """
        Validate runtime config invariants.

        Args:
            None.
        Returns:
            None.
        Assumptions:
            Empty gateway URL, RPC URL, or DSN select in-memory adapters during wiring.
        Raises:
            ValueError: If any value violates required bounds.
        Side Effects:
            None.
        """
        if self.env_name not in _ALLOWED_ENVS:
            raise ValueError(
                f"env_name must be one of {_ALLOWED_ENVS}, got {self.env_name!r}"
            )
        if not _ADDRESS_PATTERN.match(self.ledger_contract_address):
            raise ValueError(
                "ledger_contract_address must be 0x-prefixed 20-byte hex, "
                f"got {self.ledger_contract_address!r}"
            )
        if not _ADDRESS_PATTERN.match(self.decryption_verifier_address):
            raise ValueError(
                "decryption_verifier_address must be 0x-prefixed 20-byte hex, "
                f"got {self.decryption_verifier_address!r}"
            )
        if self.chain_id <= 0:
            raise ValueError(f"chain_id must be > 0, got {self.chain_id}")
        if self.fhe_timeout_s <= 0:
            raise ValueError(f"fhe_timeout_s must be > 0, got {self.fhe_timeout_s}")
        if self.permission_duration_days <= 0:
            raise ValueError(
                "permission_duration_days must be > 0, "
                f"got {self.permission_duration_days}"
            )
        if self.pending_request_ttl_s <= 0:
            raise ValueError(
                f"pending_request_ttl_s must be > 0, got {self.pending_request_ttl_s}"
            )
        if self.env_name == "prod" and not self.fhe_gateway_url:
            raise ValueError("fhe_gateway_url must be set in prod")
        if self.env_name == "prod" and not self.rpc_url:
            raise ValueError("rpc_url must be set in prod")


def load_wlvault_runtime_config(*, environ: Mapping[str, str]) -> WlvaultRuntimeConfig:
    """
    Load runtime config from YAML and env overrides.

    Args:
        environ: Environment mapping used to resolve env and override values.
    Returns:
        WlvaultRuntimeConfig: Validated runtime settings.
    Assumptions:
        Precedence is env -> YAML -> default for every key.
    Raises:
        FileNotFoundError: If config YAML path does not exist.
        ValueError: If YAML or environment values are invalid.
    Side Effects:
        Reads one YAML file from disk.
    """
    env_name = _resolve_env_name(environ=environ)
    config_path = _resolve_config_path(environ=environ, env_name=env_name)
    payload = _load_payload(path=config_path)
    ledger = _section(payload=payload, name="ledger")
    fhe = _section(payload=payload, name="fhe")
    storage = _section(payload=payload, name="storage")

    return WlvaultRuntimeConfig(
        env_name=env_name,
        ledger_contract_address=_resolve_str(
            environ=environ,
            env_key=_LEDGER_CONTRACT_ENV_KEY,
            payload=ledger,
            payload_key="contract_address",
            default="",
        ),
        chain_id=_resolve_int(
            environ=environ,
            env_key=_CHAIN_ID_ENV_KEY,
            payload=ledger,
            payload_key="chain_id",
            default=_DEFAULT_CHAIN_ID,
        ),
        rpc_url=_resolve_str(
            environ=environ,
            env_key=_RPC_URL_ENV_KEY,
            payload=ledger,
            payload_key="rpc_url",
            default="",
        ),
        fhe_gateway_url=_resolve_str(
            environ=environ,
            env_key=_FHE_GATEWAY_URL_ENV_KEY,
            payload=fhe,
            payload_key="gateway_url",
            default="",
        ),
        fhe_timeout_s=_resolve_float(
            environ=environ,
            env_key=_FHE_TIMEOUT_ENV_KEY,
            payload=fhe,
            payload_key="timeout_s",
            default=_DEFAULT_FHE_TIMEOUT_S,
        ),
        decryption_verifier_address=_resolve_str(
            environ=environ,
            env_key=_VERIFIER_ENV_KEY,
            payload=fhe,
            payload_key="decryption_verifier_address",
            default=_DEFAULT_VERIFIER_ADDRESS,
        ),
        permission_duration_days=_resolve_int(
            environ=environ,
            env_key=_DURATION_DAYS_ENV_KEY,
            payload=fhe,
            payload_key="permission_duration_days",
            default=_DEFAULT_PERMISSION_DURATION_DAYS,
        ),
        pending_request_ttl_s=_resolve_int(
            environ=environ,
            env_key=_PENDING_TTL_ENV_KEY,
            payload=fhe,
            payload_key="pending_request_ttl_s",
            default=_DEFAULT_PENDING_REQUEST_TTL_S,
        ),
        postgres_dsn=_resolve_str(
            environ=environ,
            env_key=_PG_DSN_ENV_KEY,
            payload=storage,
            payload_key="postgres_dsn",
            default="",
        ),
    )


def _resolve_env_name(*, environ: Mapping[str, str]) -> str:
    raw_env = environ.get(_ENV_NAME_KEY, "dev").strip().lower()
    if raw_env not in _ALLOWED_ENVS:
        raise ValueError(
            f"{_ENV_NAME_KEY} must be one of {_ALLOWED_ENVS}, got {raw_env!r}"
        )
    return raw_env


def _resolve_config_path(*, environ: Mapping[str, str], env_name: str) -> Path:
    """
    Resolve config YAML path using explicit override or `WLVAULT_ENV`.

    Args:
        environ: Environment mapping.
        env_name: Normalized environment name.
    Returns:
        Path: Config YAML path.
    Assumptions:
        `WLVAULT_CONFIG` has priority over env-derived path.
    Raises:
        None.
    Side Effects:
        None.
    """
    override = environ.get(_CONFIG_PATH_KEY, "").strip()
    if override:
        return Path(override)
    return Path("configs") / env_name / "wlvault.yaml"


def _load_payload(*, path: Path) -> Mapping[str, Any]:
    if not path.exists():
        raise FileNotFoundError(f"wlvault config not found: {path}")
    raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ValueError("wlvault config must be a mapping at top-level")
    return raw


def _section(*, payload: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    section = payload.get(name)
    if section is None:
        return {}
    if not isinstance(section, dict):
        raise ValueError(f"{name} section must be a mapping")
    return section


def _resolve_str(
    *,
    environ: Mapping[str, str],
    env_key: str,
    payload: Mapping[str, Any],
    payload_key: str,
    default: str,
) -> str:
    raw = environ.get(env_key, "").strip()
    if raw:
        return raw
    payload_value = payload.get(payload_key)
    if payload_value is None:
        return default
    if not isinstance(payload_value, str):
        raise ValueError(
            f"expected string for {payload_key}, got {type(payload_value).__name__}"
        )
    return payload_value.strip()


def _resolve_int(
    *,
    environ: Mapping[str, str],
    env_key: str,
    payload: Mapping[str, Any],
    payload_key: str,
    default: int,
) -> int:
    """
    Resolve positive integer setting from env -> payload -> default precedence.

    Args:
        environ: Environment mapping.
        env_key: Env variable name.
        payload: Parsed YAML subsection.
        payload_key: YAML key name.
        default: Fallback default value.
    Returns:
        int: Resolved integer value.
    Assumptions:
        String env values use base-10 integer format.
    Raises:
        ValueError: If provided value cannot be parsed as positive int.
    Side Effects:
        None.
    """
    raw = environ.get(env_key, "").strip()
    if raw:
        try:
            parsed = int(raw, 10)
        except ValueError as error:
            raise ValueError(f"{env_key} must be int, got {raw!r}") from error
        if parsed <= 0:
            raise ValueError(f"{env_key} must be > 0, got {parsed}")
        return parsed

    payload_value = payload.get(payload_key)
    if payload_value is None:
        return default
    if isinstance(payload_value, bool) or not isinstance(payload_value, int):
        raise ValueError(
            f"expected int for {payload_key}, got {type(payload_value).__name__}"
        )
    if payload_value <= 0:
        raise ValueError(f"{payload_key} must be > 0, got {payload_value}")
    return payload_value


def _resolve_float(
    *,
    environ: Mapping[str, str],
    env_key: str,
    payload: Mapping[str, Any],
    payload_key: str,
    default: float,
) -> float:
    raw = environ.get(env_key, "").strip()
    if raw:
        try:
            parsed = float(raw)
        except ValueError as error:
            raise ValueError(f"{env_key} must be float, got {raw!r}") from error
        if parsed <= 0:
            raise ValueError(f"{env_key} must be > 0, got {parsed}")
        return parsed

    payload_value = payload.get(payload_key)
    if payload_value is None:
        return default
    if isinstance(payload_value, bool) or not isinstance(payload_value, (int, float)):
        raise ValueError(
            f"expected number for {payload_key}, got {type(payload_value).__name__}"
        )
    if payload_value <= 0:
        raise ValueError(f"{payload_key} must be > 0, got {payload_value}")
    return float(payload_value)


__all__ = [
    "WlvaultRuntimeConfig",
    "load_wlvault_runtime_config",
]
