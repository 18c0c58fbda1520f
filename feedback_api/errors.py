"""
Error types and the central translator that turns them into JSON responses.

The persistence gateway (`crud.py`) raises one of the `StoreError` variants;
everything else is either an `AppError` carrying its own status code or an
unexpected exception (500).
"""

import logging
import traceback
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import Settings
from .schemas import envelope
from .validation import handle_validation_error

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Application error with an explicit HTTP status."""

    def __init__(self, message: str = "Internal server error", status_code: int = 500):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class StoreError(Exception):
    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class UniqueViolation(StoreError):
    pass


class NotFound(StoreError):
    pass


class InvalidInput(StoreError):
    pass


class StoreFailure(StoreError):
    pass


def translate(exc: Exception, settings: Settings) -> JSONResponse:
    detail: Optional[str]
    match exc:
        case UniqueViolation(detail=detail):
            status_code, message = 409, "A record with this data already exists"
        case NotFound(detail=detail):
            status_code, message = 404, "Record not found"
        case InvalidInput(detail=detail):
            status_code, message = 400, "Validation error"
        case StoreError(detail=detail):
            status_code, message = 400, "Database error occurred"
        case _:
            status_code = getattr(exc, "status_code", None) or 500
            message = getattr(exc, "message", None) or str(exc) or "Internal server error"
            detail = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))

    body = envelope(message, success=False)
    if not settings.is_production:
        body["error"] = detail
    return JSONResponse(status_code=status_code, content=body)


async def _handle_error(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Error: %s %s", request.method, request.url.path, exc_info=exc)
    return translate(exc, request.app.state.settings)


async def _handle_http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    # only the router raises these: unknown paths and wrong methods
    if exc.status_code == 404:
        message = f"Route {request.url.path} not found"
    else:
        message = str(exc.detail)
    logger.info("%s %s -> %s", request.method, request.url.path, exc.status_code)
    return JSONResponse(
        status_code=exc.status_code,
        content=envelope(message, success=False),
        headers=getattr(exc, "headers", None),
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(StarletteHTTPException, _handle_http_error)
    app.add_exception_handler(StoreError, _handle_error)
    app.add_exception_handler(AppError, _handle_error)
    app.add_exception_handler(Exception, _handle_error)
