"""
Shared Kernel primitives.

This package re-exports the minimal set of domain primitives so that other
modules can import them from one place:

    from wlvault.shared_kernel.primitives import CiphertextHandle, EvmAddress
"""

from .ciphertext_handle import CiphertextHandle
from .evm_address import EvmAddress

__all__ = [
    "CiphertextHandle",
    "EvmAddress",
]
