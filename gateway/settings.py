"""Configuration models for the content gateway."""

from __future__ import annotations

import json
from functools import lru_cache
from typing import Any, List, Optional, Set, Tuple

from pydantic import (
    BaseModel,
    Field,
    PositiveInt,
    SecretStr,
    ValidationError,
    field_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict


class PopulateTarget(BaseModel):
    """One (category, page) pair pulled from the keyword-search provider."""

    category: str = Field(..., description="Search query / category label (lowercase).")
    page: PositiveInt = Field(1, description="Provider page number.")

    @field_validator("category")
    @classmethod
    def _normalize_category(cls, value: str) -> str:
        category = value.strip().lower()
        if not category:
            raise ValueError("category cannot be blank.")
        return category


DEFAULT_POPULATE_TARGETS = [
    {"category": category, "page": page}
    for category in ("technology", "sports", "health")
    for page in (1, 2)
]


class GatewaySettings(BaseSettings):
    """Environment settings for providers, store and population."""

    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
        populate_by_name=True,
    )

    database_url: str = Field(
        "sqlite:///./var/storage/news.db",
        alias="DATABASE_URL",
        description="Store connection string (SQLAlchemy DSN).",
    )
    redis_url: str = Field("redis://localhost:6379/0", alias="GATEWAY_REDIS_URL", description="Celery broker/backend.")
    news_api_key: Optional[SecretStr] = Field(None, alias="NEWS_API_KEY", description="Keyword-search API key.")
    news_api_endpoint: str = Field(
        "https://newsapi.org/v2/everything",
        alias="NEWS_API_ENDPOINT",
        description="Keyword-search endpoint.",
    )
    news_api_timeout_seconds: PositiveInt = Field(5, alias="NEWS_API_TIMEOUT_SECONDS")
    miniflux_url: str = Field(
        "https://miniflux.example.com/v1/entries",
        alias="MINIFLUX_URL",
        description="Feed-reader entries endpoint.",
    )
    miniflux_api_key: Optional[SecretStr] = Field(None, alias="MINIFLUX_API_KEY", description="Feed-reader auth token.")
    miniflux_timeout_seconds: PositiveInt = Field(5, alias="MINIFLUX_TIMEOUT_SECONDS")
    provider_max_attempts: PositiveInt = Field(2, alias="PROVIDER_MAX_ATTEMPTS", description="Attempts per provider call.")
    description_length: PositiveInt = Field(200, alias="FEED_DESCRIPTION_LENGTH")
    placeholder_image: str = Field("/placeholder.png", alias="PLACEHOLDER_IMAGE")
    page_size: PositiveInt = Field(20, alias="FEED_PAGE_SIZE", description="Cached page size (<=100).")
    content_timeout_seconds: PositiveInt = Field(10, alias="CONTENT_TIMEOUT_SECONDS")
    populate_targets: List[PopulateTarget] = Field(
        default_factory=lambda: [PopulateTarget(**item) for item in DEFAULT_POPULATE_TARGETS],
        alias="POPULATE_TARGETS",
        description="JSON array of {category, page} objects.",
    )
    populate_interval_minutes: PositiveInt = Field(30, alias="POPULATE_INTERVAL_MINUTES")
    session_duration_hours: PositiveInt = Field(720, alias="SESSION_DURATION_HOURS")
    structlog_level: str = Field("INFO", alias="STRUCTLOG_LEVEL", description="Log level.")
    log_json: bool = Field(False, alias="LOG_JSON", description="Emit JSON log lines.")
    celery_worker_concurrency: PositiveInt = Field(2, alias="CELERY_WORKER_CONCURRENCY")
    celery_task_soft_time_limit: PositiveInt = Field(120, alias="CELERY_TASK_SOFT_TIME_LIMIT")

    @field_validator("populate_targets", mode="before")
    @classmethod
    def _parse_populate_targets(cls, value: Any) -> List[Any]:
        if value in (None, ""):
            return list(DEFAULT_POPULATE_TARGETS)
        if isinstance(value, str):
            try:
                return json.loads(value)
            except json.JSONDecodeError as exc:
                raise ValueError("POPULATE_TARGETS must be a JSON array.") from exc
        if isinstance(value, list):
            return value
        raise ValueError("POPULATE_TARGETS must be a list.")

    @field_validator("populate_targets")
    @classmethod
    def _validate_unique_targets(cls, value: List[PopulateTarget]) -> List[PopulateTarget]:
        seen: Set[Tuple[str, int]] = set()
        for target in value:
            key = (target.category, target.page)
            if key in seen:
                raise ValueError(f"duplicate populate target: {target.category}/{target.page}")
            seen.add(key)
        return value

    @field_validator("database_url")
    @classmethod
    def _validate_database_url(cls, value: str) -> str:
        if "://" not in value:
            raise ValueError("DATABASE_URL must be a valid DSN.")
        return value

    @field_validator("page_size")
    @classmethod
    def _validate_page_size(cls, v: int) -> int:
        if v > 100:
            raise ValueError("FEED_PAGE_SIZE must be 100 or less.")
        return v


@lru_cache()
def get_settings() -> GatewaySettings:
    """Return settings built from the environment."""
    try:
        return GatewaySettings()
    except ValidationError as exc:
        raise RuntimeError(f"Environment validation failed: {exc}") from exc


def reset_settings_cache() -> None:
    """Clear the settings cache (tests)."""
    get_settings.cache_clear()  # type: ignore[attr-defined]
