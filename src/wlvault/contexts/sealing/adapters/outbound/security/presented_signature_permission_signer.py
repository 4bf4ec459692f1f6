from __future__ import annotations

from typing import Any, Mapping

from wlvault.contexts.sealing.application.ports import PermissionSigner, PermissionSigningDeclined
from wlvault.shared_kernel.primitives import EvmAddress


class PresentedSignaturePermissionSigner(PermissionSigner):
    """
    PresentedSignaturePermissionSigner - replays a signature the buyer's wallet already
    produced client-side over the typed data issued in the first HTTP phase.

    A missing signature means the buyer declined in the wallet.
    """

    def __init__(self, *, signature: str | None) -> None:
        self._signature = signature

    def sign_typed_data(
        self,
        *,
        requester: EvmAddress,
        typed_data: Mapping[str, Any],
    ) -> str:
        if self._signature is None or not self._signature.strip():
            raise PermissionSigningDeclined("requester declined to sign the permission")
        return self._signature.strip()
