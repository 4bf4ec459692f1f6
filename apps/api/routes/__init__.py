from .health import build_health_router
from .listings import build_listings_router

__all__ = ["build_health_router", "build_listings_router"]
