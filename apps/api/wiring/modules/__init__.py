from .listings import build_listings_router
from .sealing import SealingModule, build_sealing_module

__all__ = ["SealingModule", "build_listings_router", "build_sealing_module"]
