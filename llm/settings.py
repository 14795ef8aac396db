"""Settings for the article chat (OpenAI) client."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, PositiveFloat, PositiveInt, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ChatSettings(BaseSettings):
    """Environment-driven configuration for the chat assistant."""

    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
        populate_by_name=True,
    )

    openai_api_key: str = Field(..., alias="OPENAI_API_KEY", description="OpenAI API key")
    chat_model: str = Field("gpt-4o-mini", alias="CHAT_MODEL", description="OpenAI model name")
    chat_max_tokens: PositiveInt = Field(400, alias="CHAT_MAX_TOKENS", description="Max completion tokens")
    chat_temperature: PositiveFloat = Field(0.3, alias="CHAT_TEMPERATURE", description="Sampling temperature")
    chat_cost_limit_usd: PositiveFloat = Field(0.02, alias="CHAT_COST_LIMIT_USD", description="Per-request cost cap (USD)")
    chat_request_timeout_seconds: PositiveInt = Field(15, alias="CHAT_REQUEST_TIMEOUT_SECONDS")
    chat_retry_max_attempts: PositiveInt = Field(2, alias="CHAT_RETRY_MAX_ATTEMPTS", description="Max retry attempts")
    chat_redis_url: str = Field("redis://localhost:6379/1", alias="CHAT_REDIS_URL", description="Chat context cache")
    chat_context_ttl_seconds: PositiveInt = Field(3600, alias="CHAT_CONTEXT_TTL_SECONDS")

    @field_validator("openai_api_key")
    @classmethod
    def _non_empty_api_key(cls, v: str) -> str:
        s = v.strip()
        if not s:
            raise ValueError("OPENAI_API_KEY cannot be blank.")
        return s


@lru_cache()
def get_chat_settings() -> ChatSettings:
    try:
        return ChatSettings()
    except ValidationError as exc:
        raise RuntimeError(f"Chat settings validation failed: {exc}") from exc


def reset_chat_settings_cache() -> None:
    get_chat_settings.cache_clear()  # type: ignore[attr-defined]
