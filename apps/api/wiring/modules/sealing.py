"""
Composition helpers for the sealing module: encryption/decryption services, ledger reader,
and the buyer decryption flow.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from wlvault.contexts.sealing.adapters.outbound import (
    HttpFheGatewayClient,
    HttpFheGatewayConfig,
    InMemoryFheGateway,
    InMemoryListingLedger,
    Web3LedgerReader,
    X25519EphemeralKeyPairFactory,
)
from wlvault.contexts.sealing.application.ports import (
    FheDecryptionService,
    FheEncryptionService,
    LedgerReader,
    SealingClock,
)
from wlvault.contexts.sealing.application.use_cases import (
    BuildEncryptedSubmissionUseCase,
    DecryptionPermissionNegotiator,
    DecryptPurchasedSecretsUseCase,
    PendingDecryptionRequests,
    VerifyBuyerAuthorizationUseCase,
)
from wlvault.contexts.sealing.domain.entities import PermissionDomain
from wlvault.platform.config import WlvaultRuntimeConfig
from wlvault.shared_kernel.primitives import EvmAddress


@dataclass(frozen=True, slots=True)
class SealingModule:
    """
    SealingModule - wired sealing use cases plus lifecycle hooks for app shutdown.

    `in_memory_ledger` and `in_memory_gateway` are set only when no RPC / gateway URL is
    configured; dev tooling and tests drive listing creation and purchase through them.
    """

    builder: BuildEncryptedSubmissionUseCase
    decrypt_use_case: DecryptPurchasedSecretsUseCase
    ledger_reader: LedgerReader
    in_memory_gateway: InMemoryFheGateway | None
    in_memory_ledger: InMemoryListingLedger | None
    close_callbacks: tuple[Callable[[], None], ...]


def build_sealing_module(*, config: WlvaultRuntimeConfig, clock: SealingClock) -> SealingModule:
    """
    Build sealing services and use cases from runtime config.

    Args:
        config: Validated runtime config.
        clock: Shared clock.
    Returns:
        SealingModule: Wired sealing module.
    Assumptions:
        Empty gateway URL selects the in-memory gateway; empty RPC URL selects the in-memory
        ledger, which requires the in-memory gateway.
    Raises:
        ValueError: If the in-memory ledger is requested together with a remote gateway.
    Side Effects:
        Opens an HTTP session when a remote gateway is configured.
    """
    contract_address = EvmAddress(config.ledger_contract_address)
    domain = PermissionDomain(
        chain_id=config.chain_id,
        verifying_contract=EvmAddress(config.decryption_verifier_address),
    )

    in_memory_gateway: InMemoryFheGateway | None = None
    close_callbacks: list[Callable[[], None]] = []
    encryption_service: FheEncryptionService
    decryption_service: FheDecryptionService
    if config.fhe_gateway_url:
        http_client = HttpFheGatewayClient(
            config=HttpFheGatewayConfig(
                base_url=config.fhe_gateway_url,
                timeout_s=config.fhe_timeout_s,
            )
        )
        encryption_service = http_client
        decryption_service = http_client
        close_callbacks.append(http_client.close)
    else:
        in_memory_gateway = InMemoryFheGateway(domain=domain, clock=clock)
        encryption_service = in_memory_gateway
        decryption_service = in_memory_gateway

    in_memory_ledger: InMemoryListingLedger | None = None
    ledger_reader: LedgerReader
    if config.rpc_url:
        ledger_reader = Web3LedgerReader(
            rpc_url=config.rpc_url,
            contract_address=contract_address,
            timeout_s=config.fhe_timeout_s,
        )
    else:
        if in_memory_gateway is None:
            raise ValueError("in-memory ledger requires in-memory FHE gateway; set rpc_url")
        in_memory_ledger = InMemoryListingLedger(
            contract_address=contract_address,
            gateway=in_memory_gateway,
        )
        ledger_reader = in_memory_ledger

    negotiator = DecryptionPermissionNegotiator(
        decryption_service=decryption_service,
        key_pair_factory=X25519EphemeralKeyPairFactory(),
        clock=clock,
        domain=domain,
        duration_days=config.permission_duration_days,
    )
    decrypt_use_case = DecryptPurchasedSecretsUseCase(
        verifier=VerifyBuyerAuthorizationUseCase(ledger=ledger_reader),
        negotiator=negotiator,
        pending_requests=PendingDecryptionRequests(
            clock=clock,
            ttl_seconds=config.pending_request_ttl_s,
        ),
        contract_address=contract_address,
    )
    return SealingModule(
        builder=BuildEncryptedSubmissionUseCase(encryption_service=encryption_service),
        decrypt_use_case=decrypt_use_case,
        ledger_reader=ledger_reader,
        in_memory_gateway=in_memory_gateway,
        in_memory_ledger=in_memory_ledger,
        close_callbacks=tuple(close_callbacks),
    )


__all__ = ["SealingModule", "build_sealing_module"]
