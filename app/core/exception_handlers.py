"""Global exception handlers for consistent error responses.

Every error leaves the API as ``{"type", "message"}`` plus ``"field"`` when
one input can be blamed. Handled errors are logged here, tagged with the
request id, so the layers below never need to log.
"""

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.exceptions import AppException, ValidationError

logger = logging.getLogger("app.exception")


def _log_extra(request: Request, status_code: int, **fields: Any) -> dict[str, Any]:
    return {
        "request_id": getattr(request.state, "request_id", None),
        "method": request.method,
        "path": request.url.path,
        "status_code": status_code,
        **fields,
    }


def _error_body(error_type: str, message: str, field: str | None = None) -> dict:
    body = {"type": error_type, "message": message}
    if field:
        body["field"] = field
    return body


def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Handle all AppException subclasses."""
    extra = _log_extra(
        request, exc.status_code, error_type=exc.error_type, error_kind=exc.kind
    )
    log = logger.error if exc.status_code >= 500 else logger.info
    log("AppException: %s - %s", exc.error_type, exc.message, extra=extra)

    field = exc.field if isinstance(exc, ValidationError) else None
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(exc.error_type, exc.message, field),
    )


def http_exception_handler(
    _request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Handle framework HTTPExceptions (unknown routes, wrong methods)."""
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body("http_error", str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


def _location(error: dict[str, Any]) -> str:
    return ".".join(str(loc) for loc in error["loc"] if loc not in ("body", "query"))


def validation_exception_handler(
    _request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Handle Pydantic request validation errors with the unified format."""
    errors = exc.errors()
    messages = []
    for error in errors:
        where = _location(error)
        messages.append(f"{where}: {error['msg']}" if where else error["msg"])

    field = _location(errors[0]) if len(errors) == 1 else None
    return JSONResponse(
        status_code=422,
        content=_error_body("validation_error", "; ".join(messages), field),
    )


def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected errors."""
    logger.error(
        "Unhandled exception: %s %s - %s",
        request.method,
        request.url.path,
        exc,
        extra=_log_extra(request, 500, error_type="internal_error"),
        exc_info=True,
    )
    return JSONResponse(
        status_code=500,
        content=_error_body("internal_error", "An unexpected error occurred"),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI app."""
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
