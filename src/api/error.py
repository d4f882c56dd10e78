"""API error mapping

Use cases return ``Error`` values; routes raise ``ClientError`` and the
handlers below render ``{"error": {"code", "message"}}``.
"""

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from libs.result import Error
from src.domain.invoice_transitions import CONFLICT_CODES

NOT_FOUND_CODES = frozenset({
    "INVOICE_NOT_FOUND",
    "CLIENT_NOT_FOUND",
})

RESOURCE_CONFLICT_CODES = frozenset({
    "CLIENT_HAS_INVOICES",
})

UPSTREAM_CODES = frozenset({
    "PAYMENT_INITIATION_FAILED",
})


class ClientError(Exception):
    def __init__(self, error: Error, status_code: int = status.HTTP_400_BAD_REQUEST):
        super().__init__(error.message)
        self.error = error
        self.status_code = status_code


def status_for(error: Error) -> int:
    """HTTP status for a use case error code"""
    if error.code in NOT_FOUND_CODES:
        return status.HTTP_404_NOT_FOUND
    if error.code in CONFLICT_CODES or error.code in RESOURCE_CONFLICT_CODES:
        return status.HTTP_409_CONFLICT
    if error.code in UPSTREAM_CODES:
        return status.HTTP_502_BAD_GATEWAY
    if error.code.endswith("_FAILED"):
        return status.HTTP_500_INTERNAL_SERVER_ERROR
    return status.HTTP_400_BAD_REQUEST


def raise_for_error(error: Error):
    raise ClientError(error, status_code=status_for(error))


def error_body(code: str, message: str) -> dict:
    return {"error": {"code": code, "message": message}}


async def client_error_handler(request: Request, exc: ClientError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.error.code, exc.error.message),
    )


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    first = exc.errors()[0] if exc.errors() else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid request")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body("VALIDATION_ERROR", f"{location}: {message}" if location else message),
    )
