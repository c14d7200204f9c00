from __future__ import annotations

import json
import logging
import math
import re
from typing import Any

from app.query.schemas import MobileSummary

logger = logging.getLogger("app.normalizer")

MAX_SUMMARY_POINTS = 5
DETAILED_FLOW_MIN_LINE_CHARS = 20
SUMMARY_FALLBACK_CHARS = 50
DETAILED_FLOW_FALLBACK_CHARS = 200
ELLIPSIS = "..."
DEFAULT_CONFIDENCE = 0.8

BULLET_MARKERS = ("•", "-", "*")
_BULLET_PREFIX_RE = re.compile(r"^[•\-*]\s*")

_FALLBACK_SUMMARY_POINTS = ("Error processing response",)
_FALLBACK_DETAILED_FLOW = "Unable to format response properly"
_FALLBACK_CONFIDENCE = 0.5
_DEFAULT_SUMMARY_POINTS = ("Response received",)


class PayloadExtractionError(ValueError):
    """Raised when the upstream payload has no usable first text block."""


def _truncate(text: str, limit: int) -> str:
    return text[:limit] + ELLIPSIS


def extract_text(payload: Any) -> str:
    """Return the text of the payload's first content block."""

    try:
        text = payload["content"][0]["text"]
    except (KeyError, IndexError, TypeError) as exc:
        raise PayloadExtractionError("payload has no first content block") from exc
    if not isinstance(text, str):
        raise PayloadExtractionError("first content block text is not a string")
    return text


def try_parse_structured(text: str) -> dict[str, Any] | None:
    """
    Parse `text` as a JSON object.

    Returns None for invalid JSON and for JSON values that are not objects (arrays,
    numbers, strings, null); those replies are handled as free-form text.
    """

    try:
        parsed = json.loads(text)
    except (ValueError, RecursionError):
        return None
    if not isinstance(parsed, dict):
        return None
    return parsed


def heuristic_parse(text: str) -> dict[str, Any]:
    """
    Build candidate fields from free-form text.

    - Lines starting with a bullet marker become summary points (first 5, in order).
    - The first other line longer than 20 characters becomes the detailed flow.
    - Missing parts fall back to prefixes of the raw text.
    """

    lines = [line for line in text.split("\n") if line.strip()]
    summary_points: list[str] = []
    detailed_flow = ""

    for line in lines:
        if line.startswith(BULLET_MARKERS):
            summary_points.append(_BULLET_PREFIX_RE.sub("", line, count=1).strip())
        elif len(line) > DETAILED_FLOW_MIN_LINE_CHARS and not detailed_flow:
            detailed_flow = line.strip()

    return {
        "summary_points": (
            summary_points[:MAX_SUMMARY_POINTS]
            if summary_points
            else [_truncate(text, SUMMARY_FALLBACK_CHARS)]
        ),
        "detailed_flow": detailed_flow or _truncate(text, DETAILED_FLOW_FALLBACK_CHARS),
        "confidence": DEFAULT_CONFIDENCE,
    }


def _coerce_summary_points(value: Any) -> list[str] | None:
    if not isinstance(value, list):
        return None
    points = [item for item in value if isinstance(item, str)]
    return points[:MAX_SUMMARY_POINTS] or None


def _coerce_confidence(value: Any) -> float | None:
    # bool is an int subclass; `true` is not a confidence.
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    try:
        number = float(value)
    except OverflowError:
        return None
    if not math.isfinite(number):
        return None
    return min(max(number, 0.0), 1.0)


def merge_with_defaults(candidate: dict[str, Any], *, raw_text: str) -> MobileSummary:
    """Fill every MobileSummary field from `candidate`, defaulting absent or empty values."""

    summary_points = _coerce_summary_points(candidate.get("summary_points"))
    detailed_flow = candidate.get("detailed_flow")
    if not isinstance(detailed_flow, str) or not detailed_flow:
        detailed_flow = _truncate(raw_text, DETAILED_FLOW_FALLBACK_CHARS)
    confidence = _coerce_confidence(candidate.get("confidence"))

    return MobileSummary(
        summary_points=summary_points or list(_DEFAULT_SUMMARY_POINTS),
        detailed_flow=detailed_flow,
        code_snippets=candidate.get("code_snippets"),
        confidence=DEFAULT_CONFIDENCE if confidence is None else confidence,
        mobile_optimized=True,
    )


def fallback_summary() -> MobileSummary:
    return MobileSummary(
        summary_points=list(_FALLBACK_SUMMARY_POINTS),
        detailed_flow=_FALLBACK_DETAILED_FLOW,
        confidence=_FALLBACK_CONFIDENCE,
        mobile_optimized=True,
    )


def normalize(payload: Any) -> MobileSummary:
    """
    Convert an upstream completion payload into a MobileSummary.

    Never raises: a payload without usable text, or any unexpected fault while
    shaping the record, yields the fixed fallback record.
    """

    try:
        text = extract_text(payload)
        candidate = try_parse_structured(text)
        if candidate is None:
            candidate = heuristic_parse(text)
        return merge_with_defaults(candidate, raw_text=text)
    except Exception as exc:  # noqa: BLE001 - normalization degrades instead of failing
        logger.warning(
            "Response normalization fell back to default record",
            extra={"error_code": type(exc).__name__},
        )
        return fallback_summary()
