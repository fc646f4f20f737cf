"""Centralized exception handlers for the FastAPI app.

Register with register_exception_handlers(app). Maps engine and framework
exceptions to HTTP responses.
"""

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from spindle.core.config import get_settings
from spindle.domain.exceptions import SpindleException

logger = logging.getLogger(__name__)

# Map domain error_code to HTTP status when applicable
_ERROR_CODE_STATUS: dict[str, int] = {
    "RESOURCE_NOT_FOUND": 404,
    "SITE_NOT_FOUND": 404,
    "COLLECTION_NOT_FOUND": 404,
    "CONTENT_NOT_FOUND": 404,
    "VALIDATION_ERROR": 400,
    "SCHEMA_VALIDATION_ERROR": 400,
    "COLLECTION_ALREADY_EXISTS": 409,
    "DUPLICATE_SLUG": 409,
    "URL_PATTERN_CONFLICT": 409,
    "SERVICE_UNAVAILABLE": 503,
}


def status_for(exc: SpindleException) -> int:
    """HTTP status for an engine exception (400 for unmapped codes)."""
    return _ERROR_CODE_STATUS.get(exc.error_code, 400)


def _spindle_exception_handler(request: Request, exc: SpindleException) -> JSONResponse:
    """Return JSON from SpindleException.to_dict() with appropriate status code."""
    status = status_for(exc)
    if status == 404:
        logger.info("%s %s -> %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=status, content=exc.to_dict())


def _validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Return 422 with validation error details."""
    return JSONResponse(
        status_code=422,
        content={
            "error": "VALIDATION_ERROR",
            "message": "Request validation failed",
            "details": exc.errors(),
        },
    )


def _http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Return JSON for Starlette HTTP exceptions (status + detail)."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": "HTTP_ERROR", "message": exc.detail},
    )


def _generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Return 500; include detail only when debug is True."""
    logger.exception("Unhandled exception: %s", exc)
    settings = get_settings()
    detail: Any = str(exc) if settings.debug else "Internal server error"
    return JSONResponse(
        status_code=500,
        content={"error": "INTERNAL_ERROR", "message": detail},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers on the FastAPI app.

    Handlers: SpindleException (and subclasses), RequestValidationError,
    StarletteHTTPException, generic Exception.
    """
    app.add_exception_handler(SpindleException, _spindle_exception_handler)
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.add_exception_handler(Exception, _generic_exception_handler)
