"""
Boundary normalization of encryption/decryption service payloads.

Handles and proofs arrive from JS-based relayers in several shapes: `0x` hex strings,
raw bytes, integer arrays, array-like objects with numeric keys (`{"0": 12, "1": 255}`),
and serialized Node buffers (`{"type": "Buffer", "data": [...]}`). Everything is turned
into `CiphertextHandle`/`bytes` here so use-cases never branch on wire representation.
"""

from __future__ import annotations

import re
from typing import Any, Mapping

from wlvault.contexts.sealing.application.ports import EncryptionResult
from wlvault.contexts.sealing.domain.errors import EncryptionServiceError
from wlvault.shared_kernel.primitives import CiphertextHandle

_HEX_PATTERN = re.compile(r"^(0x)?([0-9a-fA-F]{2})*$")
_DECIMAL_PATTERN = re.compile(r"^[0-9]+n?$")


class WireShapeError(ValueError):
    pass


def coerce_wire_bytes(raw: Any) -> bytes:
    """
    Convert one accepted wire shape to bytes.

    Args:
        raw: Hex string, bytes, int list, numeric-key mapping, or Node buffer mapping.
    Returns:
        bytes: Decoded bytes.
    Assumptions:
        Numeric-key mappings are dense (`0..n-1`).
    Raises:
        WireShapeError: If the shape is not recognized or contains non-byte values.
    Side Effects:
        None.
    """
    if isinstance(raw, (bytes, bytearray, memoryview)):
        return bytes(raw)
    if isinstance(raw, str):
        stripped = raw.strip()
        if not _HEX_PATTERN.match(stripped):
            raise WireShapeError("hex string expected")
        body = stripped[2:] if stripped.startswith("0x") else stripped
        return bytes.fromhex(body)
    if isinstance(raw, (list, tuple)):
        return _bytes_from_ints(raw)
    if isinstance(raw, Mapping):
        if raw.get("type") == "Buffer" and "data" in raw:
            data = raw["data"]
            if not isinstance(data, (list, tuple)):
                raise WireShapeError("Buffer data must be an array")
            return _bytes_from_ints(data)
        try:
            indexes = sorted(int(str(key), 10) for key in raw.keys())
        except ValueError as error:
            raise WireShapeError("array-like object must have numeric keys") from error
        if indexes != list(range(len(indexes))):
            raise WireShapeError("array-like object keys must be dense from 0")
        by_index = {int(str(key), 10): value for key, value in raw.items()}
        return _bytes_from_ints([by_index[index] for index in indexes])
    raise WireShapeError(f"unsupported wire shape {type(raw).__name__}")


def normalize_handle(raw: Any) -> CiphertextHandle:
    data = coerce_wire_bytes(raw)
    try:
        return CiphertextHandle(data)
    except ValueError as error:
        raise WireShapeError(str(error)) from error


def normalize_encryption_result(raw: Any) -> EncryptionResult:
    """
    Normalize an encryption service response into `EncryptionResult`.

    Args:
        raw: Mapping with `handles` and `inputProof` (or `proof`) keys.
    Returns:
        EncryptionResult: Handles in service order plus the proof bytes.
    Assumptions:
        Handle count is checked by the submission builder, not here.
    Raises:
        EncryptionServiceError: If the payload shape is invalid.
    Side Effects:
        None.
    """
    if not isinstance(raw, Mapping):
        raise EncryptionServiceError(service_message="encryption response must be an object")
    raw_handles = raw.get("handles")
    if not isinstance(raw_handles, (list, tuple)):
        raise EncryptionServiceError(service_message="encryption response has no handles array")
    raw_proof = raw.get("inputProof", raw.get("proof"))
    if raw_proof is None:
        raise EncryptionServiceError(service_message="encryption response has no proof")

    handles: list[CiphertextHandle] = []
    for index, raw_handle in enumerate(raw_handles):
        try:
            handles.append(normalize_handle(raw_handle))
        except WireShapeError as error:
            raise EncryptionServiceError(
                service_message=f"malformed handle at index {index}: {error}"
            ) from error
    try:
        proof = coerce_wire_bytes(raw_proof)
    except WireShapeError as error:
        raise EncryptionServiceError(service_message=f"malformed proof: {error}") from error
    return EncryptionResult(handles=tuple(handles), proof=proof)


def normalize_cleartext_value(raw: Any) -> int:
    """
    Normalize one decrypted value: int, decimal string (optionally JS bigint `123n`), or bool.
    """
    if isinstance(raw, bool):
        return int(raw)
    if isinstance(raw, int):
        return raw
    if isinstance(raw, str) and _DECIMAL_PATTERN.match(raw.strip()):
        return int(raw.strip().rstrip("n"), 10)
    raise WireShapeError(f"unsupported cleartext value {raw!r}")


def _bytes_from_ints(values: Any) -> bytes:
    out = bytearray()
    for value in values:
        if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= 255:
            raise WireShapeError(f"byte value expected, got {value!r}")
        out.append(value)
    return bytes(out)
