from __future__ import annotations

from typing import Any, Mapping

from wlvault.platform.errors import MarketError


class SealingOperationError(Exception):
    """
    SealingOperationError - deterministic error base for the secret sealing pipeline.

    Every subclass carries a stable machine-readable code, a non-secret message, the HTTP
    status expected by inbound adapters, and context details (field name, listing id).

    Related:
      - src/wlvault/platform/errors/market_error.py
      - apps/api/routes/listings.py
    """

    code: str = "unexpected_error"
    status_code: int = 500
    failed_request: Any = None

    def __init__(self, *, message: str, details: Mapping[str, Any] | None = None) -> None:
        """
        Initialize deterministic operation error fields for HTTP mapping.

        Args:
            message: Human-readable deterministic message.
            details: Optional non-secret context (field name, listing id, handle index).
        Returns:
            None.
        Assumptions:
            Messages and details never contain plaintext secret values.
        Raises:
            None.
        Side Effects:
            None.
        """
        super().__init__(message)
        self.message = message
        self.details: dict[str, Any] = dict(details) if details is not None else {}

    def to_market_error(self) -> MarketError:
        return MarketError(code=self.code, message=self.message, details=self.details)


class EncodingError(SealingOperationError):
    """
    Raised by the byte codec when a value cannot be represented in its fixed-width field.
    """

    code = "validation_error"
    status_code = 422

    def __init__(self, *, field_name: str, message: str) -> None:
        super().__init__(message=message, details={"field": field_name})
        self.field_name = field_name


class ValidationError(SealingOperationError):
    """
    Raised for malformed submission/decryption input before any external call is made.
    """

    code = "validation_error"
    status_code = 422

    def __init__(self, *, field_name: str, message: str) -> None:
        super().__init__(message=message, details={"field": field_name})
        self.field_name = field_name


class EncryptionServiceError(SealingOperationError):
    """
    Raised when the external encryption service fails, times out, or returns a bad shape.

    The service message is kept verbatim in `service_message`; the call is never retried.
    """

    code = "upstream_error"
    status_code = 502

    def __init__(self, *, service_message: str) -> None:
        super().__init__(
            message=f"Encryption service failed: {service_message}",
            details={"service": "encryption", "service_message": service_message},
        )
        self.service_message = service_message


class DecryptionServiceError(SealingOperationError):
    """
    Raised when the decryption service rejects a permission or fails; surfaced verbatim.
    """

    code = "upstream_error"
    status_code = 502

    def __init__(self, *, service_message: str, listing_id: int | None = None) -> None:
        details: dict[str, Any] = {"service": "decryption", "service_message": service_message}
        if listing_id is not None:
            details["listing_id"] = listing_id
        super().__init__(
            message=f"Decryption service rejected the request: {service_message}",
            details=details,
        )
        self.service_message = service_message


class ListingNotFoundError(SealingOperationError):
    code = "not_found"
    status_code = 404

    def __init__(self, *, listing_id: int) -> None:
        super().__init__(
            message="Listing was not found on the ledger",
            details={"listing_id": listing_id},
        )
        self.listing_id = listing_id


class LedgerReadError(SealingOperationError):
    """
    Raised when the ledger cannot be read: RPC outage, `getListing` revert, or bad struct.
    """

    code = "upstream_error"
    status_code = 502

    def __init__(self, *, listing_id: int, reason: str) -> None:
        super().__init__(
            message=f"Ledger read failed for listing {listing_id}: {reason}",
            details={"service": "ledger", "listing_id": listing_id, "reason": reason},
        )
        self.listing_id = listing_id
        self.reason = reason


class NotPurchasedError(SealingOperationError):
    """
    Raised when the ledger has no recorded buyer for the listing yet.
    """

    code = "not_purchased"
    status_code = 409

    def __init__(self, *, listing_id: int) -> None:
        super().__init__(
            message="Listing has not been purchased yet",
            details={"listing_id": listing_id},
        )
        self.listing_id = listing_id


class UnauthorizedError(SealingOperationError):
    """
    Raised when the requester is not the buyer recorded on the ledger.
    """

    code = "forbidden"
    status_code = 403

    def __init__(self, *, listing_id: int, requester: str) -> None:
        super().__init__(
            message="Requester is not the recorded buyer of this listing",
            details={"listing_id": listing_id, "requester": requester},
        )
        self.listing_id = listing_id
        self.requester = requester


class PermissionDeniedError(SealingOperationError):
    """
    Raised when the requester declines to sign, signing fails, or the signature is malformed.
    """

    code = "permission_denied"
    status_code = 403

    def __init__(self, *, reason: str, request_id: str | None = None) -> None:
        details: dict[str, Any] = {"reason": reason}
        if request_id is not None:
            details["request_id"] = request_id
        super().__init__(message="Decryption permission was not signed", details=details)
        self.reason = reason


class ReassemblyError(SealingOperationError):
    """
    Raised when the decryption result is incomplete or malformed for a secret field.
    """

    code = "reassembly_error"
    status_code = 502

    def __init__(self, *, field_name: str, index: int, reason: str) -> None:
        super().__init__(
            message=f"Decrypted {field_name} is incomplete: {reason}",
            details={"field": field_name, "index": index},
        )
        self.field_name = field_name
        self.index = index


class DecryptionRequestTransitionError(SealingOperationError):
    """
    Raised when a decryption request is driven through an illegal state transition.
    """

    code = "conflict"
    status_code = 409

    def __init__(self, *, request_id: str, current_state: str, target_state: str) -> None:
        super().__init__(
            message=f"Decryption request cannot move from {current_state} to {target_state}",
            details={
                "request_id": request_id,
                "current_state": current_state,
                "target_state": target_state,
            },
        )


class DecryptionRequestNotFoundError(SealingOperationError):
    """
    Raised when a pending two-phase decryption request is unknown, consumed, or expired.
    """

    code = "not_found"
    status_code = 404

    def __init__(self, *, request_id: str) -> None:
        super().__init__(
            message="Decryption request was not found or has expired",
            details={"request_id": request_id},
        )
