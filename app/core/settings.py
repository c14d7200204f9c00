from __future__ import annotations

from functools import lru_cache

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = "mobile-llm-gateway"
    app_env: str = Field(
        default="production",
        validation_alias=AliasChoices("APP_ENV", "app_env"),
        description="Runtime environment: development|production.",
    )

    # Serving
    host: str = Field(
        default="0.0.0.0",
        validation_alias=AliasChoices("HOST", "host"),
        description="Interface the HTTP server binds to.",
    )
    port: int = Field(
        default=3050,
        ge=1,
        le=65535,
        validation_alias=AliasChoices("PORT", "port"),
        description="Port the HTTP server listens on.",
    )

    # LLM integration (Anthropic Messages API)
    # Keep credentials out of logs; the key is only ever placed in the outbound header.
    anthropic_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("ANTHROPIC_API_KEY", "anthropic_api_key"),
        description="Anthropic API key (required for /api/query).",
    )
    claude_model: str = Field(
        default="claude-3-haiku-20240307",
        validation_alias=AliasChoices("CLAUDE_MODEL", "claude_model"),
        description="Claude model identifier used for completions.",
    )
    anthropic_base_url: str = Field(
        default="https://api.anthropic.com",
        validation_alias=AliasChoices("ANTHROPIC_BASE_URL", "anthropic_base_url"),
        description="Base URL for the Anthropic API (override for proxies/emulators).",
    )
    anthropic_version: str = Field(
        default="2023-06-01",
        validation_alias=AliasChoices("ANTHROPIC_VERSION", "anthropic_version"),
        description="Value sent in the `anthropic-version` protocol header.",
    )
    anthropic_timeout_seconds: float = Field(
        default=30.0,
        ge=1.0,
        validation_alias=AliasChoices("ANTHROPIC_TIMEOUT_SECONDS", "anthropic_timeout_seconds"),
        description="Hard timeout for a single completion request (seconds).",
    )

    # Query endpoint
    max_prompt_chars: int = Field(
        default=10_000,
        ge=1,
        validation_alias=AliasChoices("MAX_PROMPT_CHARS", "max_prompt_chars"),
        description="Prompts longer than this are rejected before any upstream call.",
    )
    mobile_prompt_envelope: bool = Field(
        default=False,
        validation_alias=AliasChoices("MOBILE_PROMPT_ENVELOPE", "mobile_prompt_envelope"),
        description=(
            "If true, append JSON formatting instructions to the prompt so the model answers "
            "in the mobile summary shape. Off by default: clients send pre-optimized prompts."
        ),
    )

    @property
    def is_development(self) -> bool:
        return str(self.app_env).strip().lower() == "development"


@lru_cache
def get_settings() -> Settings:
    return Settings()
