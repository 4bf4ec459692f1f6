from __future__ import annotations

from typing import Any, Mapping, Protocol

from wlvault.shared_kernel.primitives import EvmAddress


class PermissionSigningDeclined(Exception):
    """
    Raised by signer adapters when the requester declines to sign the permission.
    """


class PermissionSigner(Protocol):
    """
    PermissionSigner - port to the requester's signing capability (wallet or presented signature).

    Related:
      - src/wlvault/contexts/sealing/application/use_cases/negotiate_decryption_permission.py
      - src/wlvault/contexts/sealing/adapters/outbound/security/local_account_permission_signer.py
      - src/wlvault/contexts/sealing/adapters/outbound/security/
        presented_signature_permission_signer.py
    """

    def sign_typed_data(
        self,
        *,
        requester: EvmAddress,
        typed_data: Mapping[str, Any],
    ) -> str | bytes:
        """
        Sign EIP-712 typed data on behalf of the requester.

        Args:
            requester: Address expected to sign.
            typed_data: Full EIP-712 payload to sign.
        Returns:
            str | bytes: 65-byte signature as raw bytes or `0x` hex.
        Assumptions:
            The signature is computed over `typed_data` exactly as given.
        Raises:
            PermissionSigningDeclined: If the requester declines.
        Side Effects:
            May prompt an external wallet.
        """
        ...
