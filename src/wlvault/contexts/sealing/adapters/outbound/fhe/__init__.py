from .http_fhe_gateway_client import HttpFheGatewayClient, HttpFheGatewayConfig
from .in_memory_fhe_gateway import InMemoryFheGateway
from .wire_normalization import (
    WireShapeError,
    coerce_wire_bytes,
    normalize_cleartext_value,
    normalize_encryption_result,
    normalize_handle,
)

__all__ = [
    "HttpFheGatewayClient",
    "HttpFheGatewayConfig",
    "InMemoryFheGateway",
    "WireShapeError",
    "coerce_wire_bytes",
    "normalize_cleartext_value",
    "normalize_encryption_result",
    "normalize_handle",
]
