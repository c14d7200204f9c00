"""HTTP request logging middleware.

Design goals:
- Log *metadata only* (no prompts, no model output, no query strings, no headers).
- Generate or propagate X-Request-ID for correlation.
- Structured logging using the standard library logger `extra` fields.
"""

from __future__ import annotations

import logging
import re
import time
import uuid
from typing import Any

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

logger = logging.getLogger("app.http")

REQUEST_ID_HEADER = "X-Request-ID"
_SAFE_REQUEST_ID_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]{0,127}$")


def get_or_create_request_id(request: Request) -> str:
    """Propagate a well-formed client X-Request-ID, otherwise mint a UUID4 hex.

    The narrow pattern keeps client-controlled values from injecting into log lines.
    """

    candidate = request.headers.get(REQUEST_ID_HEADER)
    if candidate and _SAFE_REQUEST_ID_PATTERN.fullmatch(candidate):
        return candidate
    return uuid.uuid4().hex


def _route_label(request: Request) -> str:
    # Route template when matched; probes for unknown paths share one label.
    path = getattr(request.scope.get("route"), "path", None)
    return path if isinstance(path, str) and path else "unmatched"


def _request_extra(
    request: Request, *, request_id: str, status_code: int, started: float
) -> dict[str, Any]:
    return {
        "request_id": request_id,
        "http_method": request.method,
        "request_path": _route_label(request),
        "status_code": status_code,
        "duration_ms": round((time.perf_counter() - started) * 1000.0, 2),
    }


class HttpLoggingMiddleware(BaseHTTPMiddleware):
    """Emit one log record per request and stamp the response with X-Request-ID.

    Successful and handled-error responses log at INFO; an exception escaping the
    app logs at ERROR with its stack trace and is re-raised.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = get_or_create_request_id(request)
        started = time.perf_counter()
        # Route handlers and exception handlers read the id from request.state.
        request.state.request_id = request_id

        try:
            response = await call_next(request)
        except Exception:  # noqa: BLE001 - logged with stack trace, then re-raised
            logger.exception(
                "Unhandled exception while processing request",
                extra=_request_extra(
                    request, request_id=request_id, status_code=500, started=started
                ),
            )
            raise

        response.headers[REQUEST_ID_HEADER] = request_id
        logger.info(
            "Request completed",
            extra=_request_extra(
                request,
                request_id=request_id,
                status_code=response.status_code,
                started=started,
            ),
        )
        return response
