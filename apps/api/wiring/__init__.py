from .modules import SealingModule, build_listings_router, build_sealing_module

__all__ = ["SealingModule", "build_listings_router", "build_sealing_module"]
