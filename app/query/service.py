from __future__ import annotations

from typing import Any, Protocol

from app.core.llm.anthropic_client import SamplingParams
from app.domain.exceptions import InvalidPromptError, PromptTooLongError
from app.query.normalizer import normalize
from app.query.prompt import build_mobile_prompt
from app.query.schemas import (
    DEFAULT_MAX_TOKENS,
    DEFAULT_TEMPERATURE,
    DEFAULT_TOP_P,
    MobileSummary,
    QueryIn,
)


class LLMClient(Protocol):
    async def complete(self, *, prompt: str, params: SamplingParams | None = None) -> Any: ...


def validate_prompt(prompt: Any, *, max_chars: int) -> str:
    """Pre-flight checks; a rejected prompt never reaches the upstream client."""

    if not isinstance(prompt, str) or not prompt:
        raise InvalidPromptError()
    if len(prompt) > max_chars:
        raise PromptTooLongError(
            f"prompt has {len(prompt)} characters", max_chars=max_chars
        )
    return prompt


def sampling_params_from(payload: QueryIn) -> SamplingParams:
    # Each knob defaults independently; ranges are the upstream's concern.
    return SamplingParams(
        temperature=DEFAULT_TEMPERATURE if payload.temperature is None else payload.temperature,
        max_tokens=DEFAULT_MAX_TOKENS if payload.max_tokens is None else payload.max_tokens,
        top_p=DEFAULT_TOP_P if payload.top_p is None else payload.top_p,
    )


class QueryService:
    def __init__(self, *, llm_client: LLMClient, mobile_prompt_envelope: bool = False):
        self._llm = llm_client
        self._mobile_prompt_envelope = mobile_prompt_envelope

    async def answer(self, *, prompt: str, params: SamplingParams) -> MobileSummary:
        """
        Complete `prompt` upstream and normalize the reply.

        ClassifiedError from the client propagates unchanged; normalization itself
        never fails.
        """

        outbound = build_mobile_prompt(prompt) if self._mobile_prompt_envelope else prompt
        payload = await self._llm.complete(prompt=outbound, params=params)
        return normalize(payload)
