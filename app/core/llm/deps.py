from __future__ import annotations

from app.core.llm.anthropic_client import AnthropicClient, AnthropicConfig
from app.core.settings import get_settings


def get_anthropic_client() -> AnthropicClient | None:
    """
    Dependency provider for AnthropicClient.

    Returns None when no API key is configured so the route can answer with a
    classified authentication error without attempting an outbound call.
    """

    settings = get_settings()
    if not settings.anthropic_api_key:
        return None

    config = AnthropicConfig(
        api_key=settings.anthropic_api_key,
        base_url=settings.anthropic_base_url,
        model=settings.claude_model,
        version=settings.anthropic_version,
        timeout_seconds=float(settings.anthropic_timeout_seconds),
    )
    return AnthropicClient(config=config)
