from __future__ import annotations

import asyncio

import pytest

from app.core.llm.anthropic_client import SamplingParams
from app.domain.exceptions import (
    ErrorKind,
    InvalidPromptError,
    PromptTooLongError,
    UpstreamTimeoutError,
)
from app.query.prompt import build_mobile_prompt
from app.query.schemas import QueryIn
from app.query.service import QueryService, sampling_params_from, validate_prompt
from tests.query._helpers import RecordingLLMClient, messages_payload


@pytest.mark.parametrize("prompt", [None, "", 0, 12.5, ["text"], {"text": "x"}, True])
def test_validate_prompt_rejects_missing_or_non_text(prompt) -> None:
    with pytest.raises(InvalidPromptError) as excinfo:
        validate_prompt(prompt, max_chars=10_000)

    assert excinfo.value.kind is ErrorKind.INVALID_PROMPT
    assert excinfo.value.status_code == 400


def test_validate_prompt_length_boundary() -> None:
    assert validate_prompt("a" * 10_000, max_chars=10_000) == "a" * 10_000

    with pytest.raises(PromptTooLongError) as excinfo:
        validate_prompt("a" * 10_001, max_chars=10_000)

    assert excinfo.value.kind is ErrorKind.PROMPT_TOO_LONG
    assert excinfo.value.describe() == "Prompt too long (max 10000 characters)"


def test_whitespace_prompt_is_forwarded() -> None:
    assert validate_prompt("   ", max_chars=10) == "   "


def test_sampling_params_default_independently() -> None:
    assert sampling_params_from(QueryIn(prompt="x")) == SamplingParams(0.3, 800, 0.9)
    assert sampling_params_from(QueryIn(prompt="x", temperature=0)) == SamplingParams(0.0, 800, 0.9)
    assert sampling_params_from(QueryIn(prompt="x", top_p=1)) == SamplingParams(0.3, 800, 1.0)


def test_answer_normalizes_upstream_reply() -> None:
    llm = RecordingLLMClient(payload=messages_payload("- one\n- two"))
    svc = QueryService(llm_client=llm)

    summary = asyncio.run(svc.answer(prompt="hi", params=SamplingParams()))

    assert summary.summary_points == ["one", "two"]
    assert llm.calls == [("hi", SamplingParams())]


def test_answer_wraps_prompt_when_envelope_enabled() -> None:
    llm = RecordingLLMClient(payload=messages_payload("- one"))
    svc = QueryService(llm_client=llm, mobile_prompt_envelope=True)

    asyncio.run(svc.answer(prompt="hi", params=SamplingParams()))

    assert llm.calls[0][0] == build_mobile_prompt("hi")


def test_answer_propagates_classified_errors() -> None:
    svc = QueryService(llm_client=RecordingLLMClient(error=UpstreamTimeoutError()))

    with pytest.raises(UpstreamTimeoutError):
        asyncio.run(svc.answer(prompt="hi", params=SamplingParams()))


def test_build_mobile_prompt_keeps_caller_prompt_first() -> None:
    wrapped = build_mobile_prompt("Summarize the deploy steps")

    assert wrapped.startswith("Summarize the deploy steps\n\n")
    assert "3-5 bullet points" in wrapped
    assert '"detailed_flow"' in wrapped


def test_prompt_too_long_message_uses_configured_limit() -> None:
    with pytest.raises(PromptTooLongError) as excinfo:
        validate_prompt("123456", max_chars=5)

    assert excinfo.value.describe() == "Prompt too long (max 5 characters)"
    assert "10000" not in excinfo.value.describe()
