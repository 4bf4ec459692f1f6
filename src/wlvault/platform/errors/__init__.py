from .market_error import MarketError, normalize_payload_value

__all__ = [
    "MarketError",
    "normalize_payload_value",
]
