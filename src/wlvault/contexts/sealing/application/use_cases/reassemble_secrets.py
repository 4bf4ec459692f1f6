from __future__ import annotations

from typing import Mapping, Sequence

from wlvault.contexts.sealing.domain.entities import PurchasedSecrets
from wlvault.contexts.sealing.domain.errors import EncodingError, ReassemblyError
from wlvault.contexts.sealing.domain.services import from_bytes, hex_concat
from wlvault.contexts.sealing.domain.value_objects import (
    PRIVATE_KEY_FIELD,
    SELLER_WALLET_FIELD,
    SecretFieldDescriptor,
)
from wlvault.shared_kernel.primitives import CiphertextHandle, EvmAddress


def reassemble_secrets(
    *,
    cleartexts: Mapping[CiphertextHandle, object],
    wallet_handles: Sequence[CiphertextHandle],
    key_handles: Sequence[CiphertextHandle],
) -> PurchasedSecrets:
    """
    Rebuild seller wallet and private key from per-handle decrypted bytes.

    Args:
        cleartexts: Decryption result keyed by handle.
        wallet_handles: The 20 wallet handles in ledger order.
        key_handles: The 32 key handles in ledger order.
    Returns:
        PurchasedSecrets: Byte-identical wallet address and private key.
    Assumptions:
        Each byte is rendered as two hex digits before decoding, so values below 16 keep
        their leading zero.
    Raises:
        ReassemblyError: If a handle is missing, a value is not a byte, or a group has the
            wrong number of handles.
    Side Effects:
        None.
    """
    wallet_bytes = _reassemble_field(
        cleartexts=cleartexts,
        handles=wallet_handles,
        field=SELLER_WALLET_FIELD,
    )
    key_bytes = _reassemble_field(
        cleartexts=cleartexts,
        handles=key_handles,
        field=PRIVATE_KEY_FIELD,
    )
    seller_wallet = from_bytes(wallet_bytes, SELLER_WALLET_FIELD)
    private_key = from_bytes(key_bytes, PRIVATE_KEY_FIELD)
    if not isinstance(seller_wallet, EvmAddress) or not isinstance(private_key, bytes):
        raise ReassemblyError(field_name="secrets", index=-1, reason="unexpected decoded types")
    return PurchasedSecrets(seller_wallet=seller_wallet, private_key=private_key)


def _reassemble_field(
    *,
    cleartexts: Mapping[CiphertextHandle, object],
    handles: Sequence[CiphertextHandle],
    field: SecretFieldDescriptor,
) -> bytes:
    if len(handles) != field.slot_count:
        raise ReassemblyError(
            field_name=field.name,
            index=len(handles),
            reason=f"expected {field.slot_count} handles, got {len(handles)}",
        )

    values: list[int] = []
    for index, handle in enumerate(handles):
        if handle not in cleartexts:
            raise ReassemblyError(field_name=field.name, index=index, reason="missing handle")
        value = cleartexts[handle]
        if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= 255:
            raise ReassemblyError(
                field_name=field.name,
                index=index,
                reason="value is not a byte",
            )
        values.append(value)

    try:
        return bytes.fromhex(hex_concat(values))
    except (ValueError, EncodingError) as error:
        raise ReassemblyError(field_name=field.name, index=-1, reason=str(error)) from error
