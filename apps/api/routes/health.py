from __future__ import annotations

from fastapi import APIRouter


def build_health_router(*, env_name: str) -> APIRouter:
    router = APIRouter(tags=["health"])

    @router.get("/health")
    def get_health() -> dict[str, str]:
        return {"status": "ok", "env": env_name}

    return router


__all__ = ["build_health_router"]
