"""Centralized exception handlers for the FastAPI app.

Register with register_exception_handlers(app). Maps domain and framework
exceptions to HTTP responses. Every error body has the same shape:
{"error_kind", "error", "message", "details"}.
"""

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from taskflow.core.config import get_settings
from taskflow.domain.exceptions import TaskflowException

logger = logging.getLogger(__name__)

# Map domain error_kind to HTTP status
_ERROR_KIND_STATUS: dict[str, int] = {
    "TaskNotFound": 404,
    "TransitionNotFound": 404,
    "NotFound": 404,
    "PermissionDenied": 403,
    "GuardFailed": 422,
    "ConcurrentModification": 409,
    "ValidationError": 400,
}

# Fallback by error_code for exceptions without a caller-facing kind
_ERROR_CODE_STATUS: dict[str, int] = {
    "SERVICE_UNAVAILABLE": 503,
}


def _taskflow_exception_handler(
    request: Request, exc: TaskflowException
) -> JSONResponse:
    """Return JSON from TaskflowException.to_dict() with the status for its kind."""
    status = _ERROR_KIND_STATUS.get(
        exc.error_kind, _ERROR_CODE_STATUS.get(exc.error_code, 400)
    )
    if status >= 500:
        logger.error("%s: %s", exc.error_code, exc.message)
    return JSONResponse(status_code=status, content=exc.to_dict())


def _validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Return 400 ValidationError with the offending fields."""
    violations = [
        f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg')}"
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content={
            "error_kind": "ValidationError",
            "error": "VALIDATION_ERROR",
            "message": "Request validation failed",
            "details": {"violations": violations},
        },
    )


def _http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Return JSON for Starlette HTTP exceptions (status + detail)."""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error_kind": "HttpError",
            "error": "HTTP_ERROR",
            "message": exc.detail,
            "details": {},
        },
        headers=getattr(exc, "headers", None),
    )


def _generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Return 500; include detail only when debug is True."""
    logger.exception("Unhandled exception: %s", exc)
    settings = get_settings()
    detail: Any = str(exc) if settings.debug else "Internal server error"
    return JSONResponse(
        status_code=500,
        content={
            "error_kind": "InternalError",
            "error": "INTERNAL_ERROR",
            "message": detail,
            "details": {},
        },
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers on the FastAPI app.

    Call once after creating the app. Handlers: TaskflowException (and
    subclasses), RequestValidationError, StarletteHTTPException, generic Exception.
    """
    app.add_exception_handler(TaskflowException, _taskflow_exception_handler)
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.add_exception_handler(Exception, _generic_exception_handler)
