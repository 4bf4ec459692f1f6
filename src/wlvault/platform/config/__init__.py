from .wlvault_runtime import WlvaultRuntimeConfig, load_wlvault_runtime_config

__all__ = [
    "WlvaultRuntimeConfig",
    "load_wlvault_runtime_config",
]
