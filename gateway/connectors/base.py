"""Connector abstraction, errors, and helpers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

import httpx

from gateway.models.domain import Article
from gateway.services.deduplicator import deduplicate


class ConnectorError(Exception):
    """Base connector error."""


class TransientError(ConnectorError):
    """Retryable error (e.g., rate limit, network hiccup)."""


class PermanentError(ConnectorError):
    """Non-retryable error (e.g., 4xx semantics, malformed payload)."""


def raise_for_provider_status(resp: httpx.Response, provider: str) -> None:
    if resp.status_code == 429 or resp.status_code >= 500:
        raise TransientError(f"{provider} temporary failure: {resp.status_code}")
    if resp.status_code >= 400:
        raise PermanentError(f"{provider} error: {resp.status_code}")


def parse_timestamp(value: Any, default: datetime) -> datetime:
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, str) and value.strip():
        try:
            parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return default
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    return default


class BaseConnector(ABC):
    """Abstract connector interface with retry and normalization hooks."""

    source: str

    def fetch(self, query: Optional[str] = None, page: int = 1, *, max_attempts: int = 3) -> List[Article]:
        attempts = 0
        last_error: Optional[Exception] = None
        while attempts < max_attempts:
            attempts += 1
            try:
                raw = self._fetch_raw(query, page)
                if not isinstance(raw, list):
                    raise PermanentError(f"{self.source} returned {type(raw).__name__}, expected a list")
                return self._normalize_and_dedupe(query, raw)
            except TransientError as exc:
                last_error = exc
                if attempts >= max_attempts:
                    raise
            except PermanentError:
                raise
        assert last_error is not None
        raise last_error

    @abstractmethod
    def _fetch_raw(self, query: Optional[str], page: int) -> List[Dict[str, Any]]:
        """Return a list of raw item dicts from the upstream."""

    @abstractmethod
    def _normalize_item(self, query: Optional[str], item: Dict[str, Any], fetched_at: datetime) -> Article:
        """Map one raw item to the common article shape."""

    def _normalize_and_dedupe(self, query: Optional[str], items: Iterable[Any]) -> List[Article]:
        now = datetime.now(timezone.utc)
        normalized: List[Article] = []
        for item in items:
            if not isinstance(item, dict):
                raise PermanentError(f"{self.source} returned a malformed item: {type(item).__name__}")
            if not str(item.get("url") or "").strip():
                # url is the identity; items without one cannot be stored
                continue
            try:
                normalized.append(self._normalize_item(query, item, now))
            except (KeyError, TypeError, AttributeError, ValueError) as exc:
                raise PermanentError(f"{self.source} item could not be normalized: {exc}") from exc
        return deduplicate(normalized)
