"""Error taxonomy for the catalog API and the handlers that render it.

Every failure leaves the API as ``{"success": false, "message": ...}``.
Nothing here retries; the caller resubmits the whole operation.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

logger = logging.getLogger(__name__)


class CatalogError(Exception):
    status_code = 500
    public_message = None

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message

    @property
    def client_message(self) -> str:
        return self.public_message or self.message


class ValidationError(CatalogError):
    """Missing or malformed input. Message goes to the UI verbatim."""

    status_code = 400


class NotFound(CatalogError):
    status_code = 404


class UploadError(CatalogError):
    """Object storage rejected or failed an image upload."""

    status_code = 502


class StoreError(CatalogError):
    """Persistence failure. The detail is logged, the caller gets a generic message."""

    status_code = 500
    public_message = "Storage operation failed"


def error_envelope(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "message": message})


async def catalog_error_handler(request: Request, exc: CatalogError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return error_envelope(exc.status_code, exc.client_message)


async def http_error_handler(request: Request, exc: HTTPException) -> JSONResponse:
    return error_envelope(exc.status_code, str(exc.detail))


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(p) for p in first.get("loc", ()) if p not in ("body", "query", "path"))
        message = f"{field}: {first.get('msg')}" if field else str(first.get("msg"))
    else:
        message = "Invalid input data"
    return error_envelope(400, message)


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("%s %s raised %s", request.method, request.url.path, type(exc).__name__, exc_info=exc)
    return error_envelope(500, "Internal server error")


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(CatalogError, catalog_error_handler)
    app.add_exception_handler(HTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
