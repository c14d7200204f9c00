from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_TEMPERATURE = 0.3
DEFAULT_MAX_TOKENS = 800
DEFAULT_TOP_P = 0.9


class QueryIn(BaseModel):
    """
    Request body for `POST /api/query`.

    `prompt` is typed loosely on purpose: missing or non-string prompts must surface as
    INVALID_PROMPT from pre-flight validation rather than as a schema error.
    """

    model_config = ConfigDict(extra="ignore")

    prompt: Any = Field(
        default=None,
        description="Text forwarded to the model (required, 1-10000 characters).",
        examples=["Explain the checkout flow in three bullet points."],
    )
    temperature: float | None = Field(
        default=None,
        description=f"Sampling temperature (default {DEFAULT_TEMPERATURE}).",
        examples=[DEFAULT_TEMPERATURE],
    )
    max_tokens: int | None = Field(
        default=None,
        description=f"Maximum tokens to generate (default {DEFAULT_MAX_TOKENS}).",
        examples=[DEFAULT_MAX_TOKENS],
    )
    top_p: float | None = Field(
        default=None,
        description=f"Nucleus sampling cutoff (default {DEFAULT_TOP_P}).",
        examples=[DEFAULT_TOP_P],
    )


class MobileSummary(BaseModel):
    """Normalized, bounded-size answer for small-screen clients."""

    model_config = ConfigDict(frozen=True)

    summary_points: list[str] = Field(
        min_length=1,
        max_length=5,
        description="Bullet-style highlights, in source order.",
    )
    detailed_flow: str = Field(description="Short explanatory paragraph.")
    code_snippets: Any | None = Field(
        default=None,
        description="Passed through from a structured model reply; omitted when not supplied.",
    )
    confidence: float = Field(
        ge=0.0,
        le=1.0,
        description="Heuristic trust in the normalization (not a model probability).",
    )
    mobile_optimized: bool = Field(
        default=True,
        description="Always true; marks records produced by the normalizer.",
    )


class QueryOut(BaseModel):
    success: bool = True
    data: MobileSummary
    timestamp: str = Field(description="ISO-8601 UTC time the response was produced.")


class ErrorOut(BaseModel):
    """Error body shared by every failure of the query endpoint."""

    model_config = ConfigDict(populate_by_name=True)

    error: str = Field(description="Human-readable message.")
    code: str = Field(description="Classified error kind.", examples=["RATE_LIMIT_EXCEEDED"])
    retry_after: int | None = Field(
        default=None,
        alias="retryAfter",
        description="Seconds to wait before retrying (RATE_LIMIT_EXCEEDED only).",
    )
