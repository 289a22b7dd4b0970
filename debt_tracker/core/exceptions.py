"""
Ledger error types and their HTTP mapping.

Services raise these; the API layer turns them into JSON responses through
`register_exception_handlers`. Nothing here is retried internally.
"""

from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from loguru import logger
from starlette.status import (
    HTTP_400_BAD_REQUEST,
    HTTP_401_UNAUTHORIZED,
    HTTP_403_FORBIDDEN,
    HTTP_404_NOT_FOUND,
    HTTP_409_CONFLICT,
    HTTP_500_INTERNAL_SERVER_ERROR,
)


class LedgerError(Exception):
    """Base exception for all ledger errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(LedgerError):
    """Missing, invalid or out-of-range input."""
    pass


class NotFoundError(LedgerError):
    """Unknown id, or a caller that cannot be mapped to a client."""
    pass


class ConflictError(LedgerError):
    """Operation not allowed in the current ledger state."""
    pass


class PermissionDeniedError(LedgerError):
    """Caller role may not perform the operation."""
    pass


class AuthenticationError(LedgerError):
    """Bad credentials or token."""
    pass


EXCEPTION_STATUS = {
    ValidationError: HTTP_400_BAD_REQUEST,
    NotFoundError: HTTP_404_NOT_FOUND,
    ConflictError: HTTP_409_CONFLICT,
    PermissionDeniedError: HTTP_403_FORBIDDEN,
    AuthenticationError: HTTP_401_UNAUTHORIZED,
}


def status_code_for(exc: LedgerError) -> int:
    return EXCEPTION_STATUS.get(type(exc), HTTP_500_INTERNAL_SERVER_ERROR)


async def ledger_error_handler(request: Request, exc: LedgerError) -> JSONResponse:
    status_code = status_code_for(exc)
    if status_code >= HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    content: Dict[str, Any] = {"detail": exc.message}
    if exc.details:
        content["details"] = exc.details
    headers = {"WWW-Authenticate": "Bearer"} if status_code == HTTP_401_UNAUTHORIZED else None
    return JSONResponse(status_code=status_code, content=content, headers=headers)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(LedgerError, ledger_error_handler)
