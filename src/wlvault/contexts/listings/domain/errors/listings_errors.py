from __future__ import annotations

from typing import Any, Mapping

from wlvault.platform.errors import MarketError


class ListingsOperationError(Exception):
    """
    ListingsOperationError - deterministic error base for off-chain listing records.

    Related:
      - src/wlvault/platform/errors/market_error.py
      - apps/api/routes/listings.py
    """

    code: str = "unexpected_error"
    status_code: int = 500

    def __init__(self, *, message: str, details: Mapping[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details: dict[str, Any] = dict(details) if details is not None else {}

    def to_market_error(self) -> MarketError:
        return MarketError(code=self.code, message=self.message, details=self.details)


class ListingValidationError(ListingsOperationError):
    code = "validation_error"
    status_code = 422

    def __init__(self, *, field_name: str, message: str) -> None:
        super().__init__(message=message, details={"field": field_name})
        self.field_name = field_name


class ListingRecordNotFoundError(ListingsOperationError):
    code = "not_found"
    status_code = 404

    def __init__(self, *, listing_id: int) -> None:
        super().__init__(
            message="Listing record was not found",
            details={"listing_id": listing_id},
        )
        self.listing_id = listing_id


class ListingAlreadyLinkedError(ListingsOperationError):
    """
    Raised when a record is linked twice or an on-chain id is already taken by another record.
    """

    code = "conflict"
    status_code = 409

    def __init__(self, *, temp_id: int, on_chain_id: int) -> None:
        super().__init__(
            message="Listing record or on-chain id is already linked",
            details={"temp_id": temp_id, "on_chain_id": on_chain_id},
        )


class ReconciliationUnresolvedError(ListingsOperationError):
    """
    Raised when the creation receipt carries no decodable `ListingCreated` event and no
    fallback id was supplied.

    Recoverable: the transaction hash is kept on the record; a later link call with a decodable
    receipt or an explicit fallback id completes the link.
    """

    code = "reconciliation_unresolved"
    status_code = 409

    def __init__(self, *, temp_id: int, tx_hash: str | None, reason: str) -> None:
        super().__init__(
            message="Could not resolve on-chain listing id from transaction receipt",
            details={"temp_id": temp_id, "tx_hash": tx_hash, "reason": reason},
        )
        self.temp_id = temp_id
        self.tx_hash = tx_hash
        self.reason = reason


class ReconciliationFallbackWarning(UserWarning):
    """
    Non-fatal: a record was linked with a caller-supplied id because the receipt had no
    decodable creation event.
    """

    def __init__(self, *, temp_id: int, fallback_listing_id: int, reason: str) -> None:
        super().__init__(
            f"temp_id={temp_id} linked to fallback listing id {fallback_listing_id}: {reason}"
        )
        self.temp_id = temp_id
        self.fallback_listing_id = fallback_listing_id
        self.reason = reason
