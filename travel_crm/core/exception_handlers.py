"""Centralized exception handlers for the FastAPI app.

Register with register_exception_handlers(app). Maps domain and framework
exceptions to HTTP responses. Every error body has the same shape:
{error, message, details}.
"""

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from travel_crm.core.config import get_settings
from travel_crm.domain.exceptions import CrmException
from travel_crm.shared.telemetry.tracing import set_span_error

logger = logging.getLogger(__name__)

# Map domain error_code to HTTP status when applicable
_ERROR_CODE_STATUS: dict[str, int] = {
    "VALIDATION_ERROR": 400,
    "UNKNOWN_ACTION_TYPE": 400,
    "RESOURCE_NOT_FOUND": 404,
    "AUTOMATION_INACTIVE": 409,
    "INVALID_EXECUTION_STATE": 409,
    "SERVICE_UNAVAILABLE": 503,
}


def status_for_error_code(error_code: str) -> int:
    """HTTP status for a domain error code (400 when unmapped)."""
    return _ERROR_CODE_STATUS.get(error_code, 400)


def _crm_exception_handler(request: Request, exc: CrmException) -> JSONResponse:
    """Return JSON from CrmException.to_dict() with appropriate status code."""
    status = status_for_error_code(exc.error_code)
    if status >= 500:
        logger.error("%s: %s", exc.error_code, exc.message)
    return JSONResponse(
        status_code=status,
        content=jsonable_encoder(exc.to_dict()),
    )


def _validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Return 422 with validation error details."""
    return JSONResponse(
        status_code=422,
        content={
            "error": "VALIDATION_ERROR",
            "message": "Request validation failed",
            "details": {"errors": jsonable_encoder(exc.errors())},
        },
    )


def _http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Return JSON for Starlette HTTP exceptions (status + detail)."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": "HTTP_ERROR", "message": exc.detail, "details": {}},
        headers=getattr(exc, "headers", None),
    )


def _generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Return 500; include detail only when debug is True.

    details.requestId lets support find the matching log lines.
    """
    logger.exception("Unhandled exception: %s", exc)
    set_span_error(exc)
    detail: Any = str(exc) if get_settings().debug else "Internal server error"
    return JSONResponse(
        status_code=500,
        content={
            "error": "INTERNAL_ERROR",
            "message": detail,
            "details": {"requestId": getattr(request.state, "request_id", None)},
        },
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers on the FastAPI app.

    Call once after creating the app. Handlers: CrmException (and
    subclasses), RequestValidationError, StarletteHTTPException, generic Exception.
    """
    app.add_exception_handler(CrmException, _crm_exception_handler)
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.add_exception_handler(Exception, _generic_exception_handler)
