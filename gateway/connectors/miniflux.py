"""Feed-reader (Miniflux) connector, fetcher-injected for tests/offline."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

import httpx

from gateway.models.domain import NO_CONTENT, NO_DESCRIPTION, UNTITLED, Article
from gateway.settings import GatewaySettings, get_settings

from .base import BaseConnector, PermanentError, TransientError, parse_timestamp, raise_for_provider_status


FetcherFn = Callable[[], List[Dict[str, Any]]]

DEFAULT_FEED_SOURCE = "Miniflux Feed"
DEFAULT_FEED_CATEGORY = "general"


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


class MinifluxConnector(BaseConnector):
    """Connector that normalizes feed-reader entries.

    Entries carry a nested feed descriptor (title, image, category) which
    supplies the source name, the image and the category label.
    """

    source = "miniflux"

    def __init__(self, fetcher: Optional[FetcherFn] = None, settings: Optional[GatewaySettings] = None):
        self._fetcher = fetcher
        self._settings = settings

    @property
    def settings(self) -> GatewaySettings:
        return self._settings or get_settings()

    def _fetch_raw(self, query: Optional[str], page: int) -> List[Dict[str, Any]]:
        if self._fetcher is not None:
            return self._fetcher()

        cfg = self.settings
        if not cfg.miniflux_api_key:
            raise PermanentError("MINIFLUX_API_KEY is not configured.")

        headers = {"X-Auth-Token": cfg.miniflux_api_key.get_secret_value()}
        try:
            resp = httpx.get(cfg.miniflux_url, headers=headers, timeout=float(cfg.miniflux_timeout_seconds))
        except httpx.TimeoutException as exc:  # pragma: no cover - rare
            raise TransientError("Miniflux timeout") from exc
        except httpx.HTTPError as exc:  # pragma: no cover - rare
            raise TransientError("Miniflux request failed") from exc

        raise_for_provider_status(resp, "Miniflux")

        data = resp.json()
        entries = data.get("entries") if isinstance(data, dict) else None
        if not isinstance(entries, list):
            raise PermanentError("Miniflux response has no entries list.")
        return entries

    def _normalize_item(self, query: Optional[str], item: Dict[str, Any], fetched_at: datetime) -> Article:
        feed = _as_dict(item.get("feed"))
        category = feed.get("category")
        if isinstance(category, dict):
            category = category.get("title")
        content = str(item.get("content") or "")
        limit = int(self.settings.description_length)
        return Article(
            url=str(item["url"]).strip(),
            title=item.get("title") or UNTITLED,
            description=item.get("description") or (content[:limit] if content else NO_DESCRIPTION),
            content=content or NO_CONTENT,
            image_url=feed.get("image") or self.settings.placeholder_image,
            source_name=feed.get("title") or DEFAULT_FEED_SOURCE,
            published_at=parse_timestamp(item.get("published_at"), fetched_at),
            category=str(category or "") or DEFAULT_FEED_CATEGORY,
        )
