"""
Composition helpers for the listings API module.
"""

from __future__ import annotations

from fastapi import APIRouter

from apps.api.routes import build_listings_router as build_listings_api_router
from apps.api.wiring.modules.sealing import SealingModule
from wlvault.contexts.listings.adapters.outbound import (
    AbiListingCreatedDecoder,
    InMemoryListingRecordRepository,
    PostgresListingRecordRepository,
    PsycopgListingsPostgresGateway,
)
from wlvault.contexts.listings.application.ports import ListingRecordRepository, ListingsClock
from wlvault.contexts.listings.application.use_cases import (
    GetListingRecordUseCase,
    LinkListingToChainUseCase,
    ListListingRecordsUseCase,
    SubmitListingForEncryptionUseCase,
)
from wlvault.platform.config import WlvaultRuntimeConfig
from wlvault.shared_kernel.primitives import EvmAddress


def build_listings_router(
    *,
    config: WlvaultRuntimeConfig,
    clock: ListingsClock,
    sealing: SealingModule,
) -> APIRouter:
    """
    Build fully wired listings router.

    Args:
        config: Validated runtime config.
        clock: Shared clock.
        sealing: Wired sealing module.
    Returns:
        APIRouter: Router exposing `/listings` endpoints.
    Assumptions:
        Empty Postgres DSN selects in-memory record storage.
    Raises:
        ValueError: If dependencies are missing.
    Side Effects:
        None.
    """
    if sealing is None:  # type: ignore[truthy-bool]
        raise ValueError("build_listings_router requires sealing module")

    contract_address = EvmAddress(config.ledger_contract_address)
    repository = _build_listing_record_repository(config=config)
    return build_listings_api_router(
        submit_use_case=SubmitListingForEncryptionUseCase(
            sealer=sealing.builder,
            repository=repository,
            clock=clock,
            contract_address=contract_address,
        ),
        list_use_case=ListListingRecordsUseCase(repository=repository),
        get_use_case=GetListingRecordUseCase(repository=repository),
        link_use_case=LinkListingToChainUseCase(
            repository=repository,
            decoder=AbiListingCreatedDecoder(contract_address=contract_address),
            clock=clock,
        ),
        decrypt_use_case=sealing.decrypt_use_case,
    )


def _build_listing_record_repository(*, config: WlvaultRuntimeConfig) -> ListingRecordRepository:
    if config.postgres_dsn:
        gateway = PsycopgListingsPostgresGateway(dsn=config.postgres_dsn)
        return PostgresListingRecordRepository(gateway=gateway)
    return InMemoryListingRecordRepository()


__all__ = ["build_listings_router"]
