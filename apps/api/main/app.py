"""
FastAPI application factory for the wlvault API.
"""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from typing import AsyncIterator, Mapping

from fastapi import FastAPI

from apps.api.common import register_api_error_handlers
from apps.api.routes import build_health_router
from apps.api.wiring.modules import build_listings_router, build_sealing_module
from wlvault.platform.config import load_wlvault_runtime_config
from wlvault.platform.time import SystemClock

log = logging.getLogger(__name__)


def create_app(*, environ: Mapping[str, str] | None = None) -> FastAPI:
    """
    Build FastAPI app with sealing and listings modules wired at startup.

    Related: apps.api.routes.listings,
      apps.api.wiring.modules.sealing,
      apps.api.wiring.modules.listings,
      wlvault.platform.config.wlvault_runtime

    Args:
        environ: Optional environment mapping override.
    Returns:
        FastAPI: Application instance with registered routers.
    Assumptions:
        Config and adapters are validated before the first request.
    Raises:
        FileNotFoundError: If the config YAML path is missing.
        ValueError: If config values are invalid.
    Side Effects:
        Reads config YAML; stores the sealing module on `app.state.sealing`.
    """
    effective_environ = os.environ if environ is None else environ
    config = load_wlvault_runtime_config(environ=effective_environ)
    clock = SystemClock()
    sealing = build_sealing_module(config=config, clock=clock)

    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
        try:
            yield
        finally:
            for close in sealing.close_callbacks:
                close()

    app = FastAPI(title="wlvault API", version="1.0.0", lifespan=lifespan)
    app.state.sealing = sealing
    register_api_error_handlers(app=app)
    app.include_router(build_health_router(env_name=config.env_name))
    app.include_router(build_listings_router(config=config, clock=clock, sealing=sealing))
    log.info(
        "wlvault api ready env=%s contract=%s remote_gateway=%s remote_ledger=%s postgres=%s",
        config.env_name,
        config.ledger_contract_address,
        bool(config.fhe_gateway_url),
        bool(config.rpc_url),
        bool(config.postgres_dsn),
    )
    return app
