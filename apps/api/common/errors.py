"""
HTTP rendering of MarketError: code-to-status table, operation error mapping, and the
deterministic 422 body produced for request validation failures.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Sequence, cast

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from starlette.requests import Request
from starlette.responses import JSONResponse

from wlvault.contexts.listings.domain.errors import ListingsOperationError
from wlvault.contexts.sealing.domain.errors import SealingOperationError
from wlvault.platform.errors import MarketError, normalize_payload_value

log = logging.getLogger(__name__)

_STATUS_BY_CODE: Mapping[str, int] = {
    "unauthorized": 401,
    "forbidden": 403,
    "permission_denied": 403,
    "not_found": 404,
    "conflict": 409,
    "not_purchased": 409,
    "reconciliation_unresolved": 409,
    "validation_error": 422,
    "upstream_error": 502,
    "reassembly_error": 502,
}
_UNEXPECTED = MarketError(code="unexpected_error", message="Unexpected error")


def register_api_error_handlers(*, app: FastAPI) -> None:
    """
    Install the MarketError and RequestValidationError handlers on `app`.

    Args:
        app: FastAPI application being assembled.
    Returns:
        None.
    Assumptions:
        Called once from `create_app`.
    Raises:
        ValueError: If `app` is None.
    Side Effects:
        Registers two exception handlers.
    """
    if app is None:  # type: ignore[truthy-bool]
        raise ValueError("register_api_error_handlers requires app")

    app.add_exception_handler(MarketError, market_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)


def map_operation_error(*, error: Exception) -> MarketError:
    """
    Translate whatever a use case raised into the MarketError a route re-raises.

    Sealing and listings errors carry their own code; anything else is logged with its
    traceback and surfaced as an opaque `unexpected_error`.
    """
    if isinstance(error, MarketError):
        return error
    if isinstance(error, (SealingOperationError, ListingsOperationError)):
        return error.to_market_error()
    log.exception("unhandled %s in request", type(error).__name__, exc_info=error)
    return _UNEXPECTED


def market_error_handler(_request: Request, error: Exception) -> JSONResponse:
    market_error = cast(MarketError, error)
    return JSONResponse(
        status_code=_STATUS_BY_CODE.get(market_error.code, 500),
        content=market_error.to_payload(),
    )


def request_validation_error_handler(request: Request, error: Exception) -> JSONResponse:
    issues = cast(RequestValidationError, error).errors()
    entries = [_validation_entry(issue=issue) for issue in _as_list(issues)]
    entries.sort(key=lambda entry: (entry["path"], entry["code"], entry["message"]))
    return market_error_handler(
        request,
        MarketError(
            code="validation_error",
            message="Validation failed",
            details={"errors": entries},
        ),
    )


def _as_list(value: Any) -> list[Any]:
    if isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray)):
        return list(value)
    return []


def _validation_entry(*, issue: Any) -> dict[str, str]:
    """
    Flatten one pydantic error into `{"path", "code", "message"}`.

    Args:
        issue: Item from `RequestValidationError.errors()`.
    Returns:
        dict[str, str]: Path like `body.quantity`, lower-case code, and message.
    Assumptions:
        Pydantic `missing` errors are reported as `required`.
    Raises:
        None.
    Side Effects:
        None.
    """
    if not isinstance(issue, Mapping):
        return {"path": "unknown", "code": "validation_error", "message": str(issue)}

    loc = issue.get("loc")
    parts = [str(part) for part in _as_list(loc)]
    if parts:
        path = ".".join(parts)
    else:
        path = "unknown" if loc is None or isinstance(loc, (list, tuple)) else str(loc)

    code = str(issue.get("type") or "").strip().lower() or "validation_error"
    if code == "missing" or code.endswith(".missing"):
        code = "required"

    return {
        "path": path,
        "code": code,
        "message": str(normalize_payload_value(value=issue.get("msg", "Invalid"))),
    }
