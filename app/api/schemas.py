from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, Field


def iso_timestamp(now: datetime | None = None) -> str:
    """UTC ISO-8601 timestamp with millisecond precision and a `Z` suffix."""

    now = now or datetime.now(UTC)
    return now.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class HealthOut(BaseModel):
    """Health check response."""

    status: str = Field(
        description="Service status indicator. `healthy` means the API process is up.",
        examples=["healthy"],
    )
    timestamp: str = Field(
        description="ISO-8601 UTC time of the check.",
        examples=["2025-07-01T12:00:00.000Z"],
    )
