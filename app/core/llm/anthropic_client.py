from __future__ import annotations

import asyncio
import logging
import re
import time
from dataclasses import dataclass
from typing import Any

import httpx

from app.core.metrics import observe_upstream_call
from app.domain.exceptions import (
    AuthenticationError,
    ClassifiedError,
    InvalidRequestError,
    RateLimitExceededError,
    UnknownUpstreamError,
    UpstreamTimeoutError,
)

logger = logging.getLogger("app.llm")

_RETRY_AFTER_RE = re.compile(r"^\s*(\d+)")


@dataclass(frozen=True)
class AnthropicConfig:
    api_key: str
    base_url: str
    model: str
    version: str = "2023-06-01"
    timeout_seconds: float = 30.0


@dataclass(frozen=True)
class SamplingParams:
    """Generation knobs passed through to the upstream service without range checks."""

    temperature: float = 0.3
    max_tokens: int = 800
    top_p: float = 0.9


def _parse_retry_after(value: str | None) -> int | None:
    """Leading integer seconds of a `retry-after` header; None when absent or unparseable."""

    if value is None:
        return None
    match = _RETRY_AFTER_RE.match(value)
    if match is None:
        return None
    return int(match.group(1))


def _classify_status(resp: httpx.Response) -> ClassifiedError:
    status = resp.status_code
    if status == 429:
        return RateLimitExceededError(
            "Rate limit exceeded",
            retry_after=_parse_retry_after(resp.headers.get("retry-after")),
        )
    if status == 400:
        return InvalidRequestError("Invalid request format or parameters")
    if status == 401:
        return AuthenticationError("Authentication failed")
    return UnknownUpstreamError(f"Request failed with status code {status}")


class AnthropicClient:
    """
    Minimal Anthropic Messages API client.

    Design notes:
    - Exactly one outbound request per call; no retries, no caching.
    - Every failure is raised as a ClassifiedError subclass.
    - Prompts and generated text are never logged; only usage metadata is.
    """

    def __init__(
        self,
        *,
        config: AnthropicConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._config = config
        self._transport = transport

    async def complete(self, *, prompt: str, params: SamplingParams | None = None) -> Any:
        """
        Send `prompt` to the Messages API and return the decoded response body.

        A 2xx body that is not JSON is returned as raw text; callers treat the payload as
        opaque.
        """

        params = params or SamplingParams()
        url = f"{self._config.base_url.rstrip('/')}/v1/messages"
        headers = {
            "Content-Type": "application/json",
            "x-api-key": self._config.api_key,
            "anthropic-version": self._config.version,
        }
        payload: dict[str, Any] = {
            "model": self._config.model,
            "max_tokens": params.max_tokens,
            "temperature": params.temperature,
            "top_p": params.top_p,
            "messages": [{"role": "user", "content": prompt}],
        }

        started = time.perf_counter()
        try:
            # httpx limits each phase; wait_for bounds the whole call from its start.
            resp = await asyncio.wait_for(
                self._post(url, headers=headers, payload=payload),
                timeout=self._config.timeout_seconds,
            )
        except (httpx.TimeoutException, TimeoutError) as exc:
            error = UpstreamTimeoutError("Request timeout")
            self._record_failure(error, started)
            raise error from exc
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            error = UnknownUpstreamError(str(exc) or "Unknown error occurred")
            self._record_failure(error, started)
            raise error from exc

        if not resp.is_success:
            error = _classify_status(resp)
            self._record_failure(error, started, upstream_status=resp.status_code)
            raise error

        try:
            data: Any = resp.json()
        except ValueError:
            data = resp.text

        duration = time.perf_counter() - started
        observe_upstream_call(outcome="success", duration_seconds=duration)

        usage = data.get("usage") if isinstance(data, dict) else None
        usage = usage if isinstance(usage, dict) else {}
        logger.info(
            "Upstream completion received",
            extra={
                "model": data.get("model") if isinstance(data, dict) else None,
                "input_tokens": usage.get("input_tokens"),
                "output_tokens": usage.get("output_tokens"),
                "stop_reason": data.get("stop_reason") if isinstance(data, dict) else None,
                "duration_ms": round(duration * 1000.0, 2),
            },
        )
        return data

    async def _post(
        self, url: str, *, headers: dict[str, str], payload: dict[str, Any]
    ) -> httpx.Response:
        async with httpx.AsyncClient(
            timeout=self._config.timeout_seconds, transport=self._transport
        ) as client:
            return await client.post(url, headers=headers, json=payload)

    def _record_failure(
        self, error: ClassifiedError, started: float, *, upstream_status: int | None = None
    ) -> None:
        duration = time.perf_counter() - started
        observe_upstream_call(outcome=error.kind.value, duration_seconds=duration)
        logger.warning(
            "Upstream completion failed",
            extra={
                "error_code": error.kind.value,
                "upstream_status": upstream_status,
                "duration_ms": round(duration * 1000.0, 2),
            },
        )
