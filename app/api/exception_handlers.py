from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.domain.exceptions import (
    ClassifiedError,
    InternalError,
    InvalidRequestError,
    RateLimitExceededError,
)
from app.query.schemas import ErrorOut

logger = logging.getLogger("app.errors")


def _request_id(request: Request) -> str | None:
    return getattr(request.state, "request_id", None) or request.headers.get("X-Request-ID")


def classified_error_response(exc: ClassifiedError) -> JSONResponse:
    """Render `{error, code, retryAfter?}` with the status mapped to the error kind."""

    retry_after = exc.retry_after if isinstance(exc, RateLimitExceededError) else None
    body = ErrorOut(error=exc.describe(), code=exc.kind.value, retry_after=retry_after)
    headers = {"Retry-After": str(retry_after)} if retry_after is not None else None
    return JSONResponse(
        status_code=exc.status_code,
        content=body.model_dump(by_alias=True, exclude_none=True),
        headers=headers,
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register application exception handlers."""

    @app.exception_handler(ClassifiedError)
    async def handle_classified_error(request: Request, exc: ClassifiedError) -> JSONResponse:
        # IMPORTANT: internal messages go to logs only; never request bodies or prompts.
        logger.info(
            "Request failed with classified error",
            extra={
                "request_id": _request_id(request),
                "http_method": request.method,
                "request_path": request.url.path,  # no query string
                "status_code": exc.status_code,
                "error_code": exc.kind.value,
                "detail": exc.message,
            },
        )
        return classified_error_response(exc)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        logger.info(
            "Request body failed validation",
            extra={
                "request_id": _request_id(request),
                "http_method": request.method,
                "request_path": request.url.path,
                "status_code": 400,
                "error_code": InvalidRequestError.kind.value,
            },
        )
        return classified_error_response(InvalidRequestError())

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        # The stack trace is logged by the HTTP logging middleware; expose nothing here.
        return classified_error_response(InternalError())
