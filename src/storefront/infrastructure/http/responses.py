"""Response envelope and domain-exception status mapping."""

from __future__ import annotations

from typing import Any

from fastapi.responses import JSONResponse

from storefront.domain.exceptions import (
    DomainException,
    EntityNotFoundError,
    InsufficientStockError,
    InvalidSignatureError,
    InvalidStateError,
    PaymentGatewayError,
    ValidationError,
)

STATUS_CODES: dict[type[DomainException], int] = {
    ValidationError: 422,
    EntityNotFoundError: 404,
    InsufficientStockError: 400,
    InvalidStateError: 400,
    InvalidSignatureError: 403,
    PaymentGatewayError: 502,
}


def status_code_for(exc: DomainException) -> int:
    for exc_type in type(exc).__mro__:
        if exc_type in STATUS_CODES:
            return STATUS_CODES[exc_type]
    return 400


def envelope(success: bool, message: str, data: Any = None, errors: Any = None) -> dict:
    body: dict = {"success": success, "message": message}
    if data is not None:
        body["data"] = data
    if errors:
        body["errors"] = errors
    return body


def ok(message: str, data: Any = None, status_code: int = 200) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=envelope(True, message, data=data))


def fail(status_code: int, message: str, errors: Any = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=envelope(False, message, errors=errors))
