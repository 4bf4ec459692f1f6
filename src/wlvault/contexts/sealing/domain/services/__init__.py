from .byte_codec import (
    SecretValue,
    ether_to_minor_units,
    from_bytes,
    hex_concat,
    to_bytes,
    to_slot_values,
)

__all__ = [
    "SecretValue",
    "ether_to_minor_units",
    "from_bytes",
    "hex_concat",
    "to_bytes",
    "to_slot_values",
]
