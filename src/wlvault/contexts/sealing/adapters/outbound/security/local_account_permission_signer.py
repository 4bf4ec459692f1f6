from __future__ import annotations

from typing import Any, Mapping

from eth_account import Account
from eth_account.messages import encode_typed_data

from wlvault.contexts.sealing.application.ports import PermissionSigner
from wlvault.shared_kernel.primitives import EvmAddress


class LocalAccountPermissionSigner(PermissionSigner):
    """
    LocalAccountPermissionSigner - signs permission typed data with a locally held key.

    Used by scripted buyers and tests; browser wallets sign client-side and present the
    signature through `PresentedSignaturePermissionSigner` instead.

    Related:
      - src/wlvault/contexts/sealing/application/ports/permission_signer.py
      - tests/unit/contexts/sealing/application/test_decryption_permission_negotiator.py
    """

    def __init__(self, *, private_key: str | bytes) -> None:
        self._account = Account.from_key(private_key)
        self._address = EvmAddress(self._account.address)

    @property
    def address(self) -> EvmAddress:
        return self._address

    def sign_typed_data(
        self,
        *,
        requester: EvmAddress,
        typed_data: Mapping[str, Any],
    ) -> bytes:
        """
        Sign typed data when the requester is this account.

        Args:
            requester: Address expected to sign.
            typed_data: Full EIP-712 payload.
        Returns:
            bytes: 65-byte `r || s || v` signature.
        Assumptions:
            Payload is signed exactly as given.
        Raises:
            ValueError: If requester is not this account's address.
        Side Effects:
            None.
        """
        if requester != self._address:
            raise ValueError("LocalAccountPermissionSigner cannot sign for another address")
        signable = encode_typed_data(full_message=dict(typed_data))
        signed = self._account.sign_message(signable)
        return bytes(signed.signature)
