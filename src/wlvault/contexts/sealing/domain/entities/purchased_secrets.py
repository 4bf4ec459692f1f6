from __future__ import annotations

from dataclasses import dataclass, field

from wlvault.shared_kernel.primitives import EvmAddress


@dataclass(frozen=True, slots=True)
class PurchasedSecrets:
    """
    PurchasedSecrets - reassembled seller wallet and private key returned to the buyer.

    `private_key` is excluded from `repr`.
    """

    seller_wallet: EvmAddress
    private_key: bytes = field(repr=False)

    def __post_init__(self) -> None:
        if len(self.private_key) != 32:
            raise ValueError("PurchasedSecrets.private_key must be 32 bytes")

    @property
    def private_key_hex(self) -> str:
        return "0x" + self.private_key.hex()
