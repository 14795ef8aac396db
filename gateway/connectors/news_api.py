"""Keyword-search (NewsAPI) connector, provider-injected for tests/offline."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

import httpx

from gateway.models.domain import (
    NO_CONTENT,
    NO_DESCRIPTION,
    UNKNOWN_SOURCE,
    UNTITLED,
    Article,
)
from gateway.settings import GatewaySettings, get_settings

from .base import BaseConnector, PermanentError, TransientError, parse_timestamp, raise_for_provider_status


ProviderFn = Callable[[str, int], List[Dict[str, Any]]]


class NewsAPIConnector(BaseConnector):
    """Connector for the NewsAPI `everything` search.

    - with a provider: offline mode, the provider returns raw article dicts
    - without one: real HTTP call against NEWS_API_ENDPOINT
    """

    source = "news_api"

    def __init__(self, provider: Optional[ProviderFn] = None, settings: Optional[GatewaySettings] = None):
        self._provider = provider
        self._settings = settings

    @property
    def settings(self) -> GatewaySettings:
        return self._settings or get_settings()

    def _fetch_raw(self, query: Optional[str], page: int) -> List[Dict[str, Any]]:
        if not query:
            raise PermanentError("NewsAPI requires a search query.")
        if self._provider is not None:
            return self._provider(query, page)

        cfg = self.settings
        if not cfg.news_api_key:
            raise PermanentError("NEWS_API_KEY is not configured.")

        params = {
            "q": query,
            "page": page,
            "apiKey": cfg.news_api_key.get_secret_value(),
        }
        try:
            resp = httpx.get(
                cfg.news_api_endpoint,
                params=params,
                timeout=float(cfg.news_api_timeout_seconds),
            )
        except httpx.TimeoutException as exc:  # pragma: no cover - rare
            raise TransientError("NewsAPI timeout") from exc
        except httpx.HTTPError as exc:  # pragma: no cover - rare
            raise TransientError("NewsAPI request failed") from exc

        raise_for_provider_status(resp, "NewsAPI")

        data = resp.json()
        if not isinstance(data, dict):
            raise PermanentError("NewsAPI error: response is not a JSON object")
        if data.get("status") != "ok" or not isinstance(data.get("articles"), list):
            raise PermanentError(f"NewsAPI error: {data.get('message') or 'Unknown error'}")
        return data["articles"]

    def _normalize_item(self, query: Optional[str], item: Dict[str, Any], fetched_at: datetime) -> Article:
        source = item.get("source") or {}
        description = item.get("description") or NO_DESCRIPTION
        return Article(
            url=str(item["url"]).strip(),
            title=item.get("title") or UNTITLED,
            description=description,
            content=item.get("description") or NO_CONTENT,
            image_url=item.get("urlToImage") or self.settings.placeholder_image,
            source_name=(source.get("name") if isinstance(source, dict) else None) or UNKNOWN_SOURCE,
            published_at=parse_timestamp(item.get("publishedAt") or item.get("published_at"), fetched_at),
            category=query or "",
        )
