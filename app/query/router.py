from __future__ import annotations

import logging

from fastapi import APIRouter, Body, Depends, Request

from app.api.schemas import iso_timestamp
from app.core.llm.deps import get_anthropic_client
from app.core.settings import get_settings
from app.domain.exceptions import AuthenticationError, ClassifiedError, InternalError
from app.query.schemas import ErrorOut, QueryIn, QueryOut
from app.query.service import QueryService, sampling_params_from, validate_prompt

router = APIRouter(prefix="/api", tags=["query"])
logger = logging.getLogger("app.query")

_ERROR_RESPONSES = {
    400: {"model": ErrorOut, "description": "INVALID_PROMPT, PROMPT_TOO_LONG or INVALID_REQUEST"},
    401: {"model": ErrorOut, "description": "AUTHENTICATION_ERROR"},
    429: {"model": ErrorOut, "description": "RATE_LIMIT_EXCEEDED (with retryAfter)"},
    500: {"model": ErrorOut, "description": "UNKNOWN_ERROR or INTERNAL_ERROR"},
    504: {"model": ErrorOut, "description": "TIMEOUT"},
}


@router.post(
    "/query",
    response_model=QueryOut,
    response_model_exclude_none=True,
    responses=_ERROR_RESPONSES,
    summary="Query the model and get a mobile summary",
)
async def query(
    request: Request,
    payload: QueryIn | None = Body(default=None),
    llm_client=Depends(get_anthropic_client),
) -> QueryOut:
    """
    Forward a prompt to the completion service and normalize the reply for small screens.

    IMPORTANT:
    - Prompts and model output are never logged or stored.
    - Unexpected faults are reported as INTERNAL_ERROR without details.
    """

    settings = get_settings()
    request_id = getattr(request.state, "request_id", None) or request.headers.get("X-Request-ID")
    body = payload or QueryIn()

    prompt = validate_prompt(body.prompt, max_chars=int(settings.max_prompt_chars))
    if llm_client is None:
        raise AuthenticationError("Anthropic API key is not configured")

    svc = QueryService(
        llm_client=llm_client, mobile_prompt_envelope=settings.mobile_prompt_envelope
    )
    try:
        summary = await svc.answer(prompt=prompt, params=sampling_params_from(body))
    except ClassifiedError:
        raise
    except Exception:  # noqa: BLE001 - mapped to a detail-free INTERNAL_ERROR
        logger.exception(
            "Query failed with unexpected error",
            extra={"request_id": request_id, "success": False},
        )
        raise InternalError() from None

    logger.info(
        "Query answered",
        extra={"request_id": request_id, "success": True},
    )
    return QueryOut(data=summary, timestamp=iso_timestamp())
