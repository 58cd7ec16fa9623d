"""HTTP access logging with request ids.

Each request is tagged with the caller's X-Request-ID, or a fresh one, which
is stored on ``request.state``, echoed on the response and attached to every
access and error log line for that request.
"""

from __future__ import annotations

import logging
import time
import uuid
from typing import Any

from fastapi import FastAPI
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from app.core.logging import env_bool

REQUEST_ID_HEADER = "X-Request-ID"

logger = logging.getLogger("app.request")


def _level_for(status_code: int | None) -> int:
    # No status means the endpoint raised past every handler.
    if status_code is None or status_code >= 500:
        return logging.ERROR
    if status_code >= 400:
        return logging.WARNING
    return logging.INFO


def _access_extra(
    request: Request, request_id: str, status_code: int | None, duration_ms: float
) -> dict[str, Any]:
    return {
        "request_id": request_id,
        "method": request.method,
        "path": request.url.path,
        "query": request.url.query,
        "status_code": status_code,
        "duration_ms": round(duration_ms, 2),
        "client_ip": request.client.host if request.client else None,
        "user_agent": request.headers.get("user-agent"),
    }


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        request.state.request_id = request_id

        start = time.perf_counter()
        status_code: int | None = None
        try:
            response = await call_next(request)
            status_code = response.status_code
            response.headers[REQUEST_ID_HEADER] = request_id
            return response
        finally:
            duration_ms = (time.perf_counter() - start) * 1000.0
            query = f"?{request.url.query}" if request.url.query else ""
            logger.log(
                _level_for(status_code),
                "%s %s%s -> %s (%.2fms)",
                request.method,
                request.url.path,
                query,
                status_code,
                duration_ms,
                extra=_access_extra(request, request_id, status_code, duration_ms),
            )


def add_request_logging_middleware(app: FastAPI) -> None:
    """Attach the access logging middleware unless LOG_REQUESTS is off."""
    if not env_bool("LOG_REQUESTS", default=True):
        return
    app.add_middleware(RequestLoggingMiddleware)
