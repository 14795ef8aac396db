from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import OperationalError

from gateway.connectors.base import PermanentError
from gateway.connectors.miniflux import MinifluxConnector
from gateway.connectors.news_api import NewsAPIConnector
from gateway.db.session import init_schema
from gateway.services.gateway import ContentGateway


def _provider(pages: Dict[int, List[Dict[str, Any]]]):
    def _fetch(_query: str, page: int) -> List[Dict[str, Any]]:
        return pages.get(page, [])

    return _fetch


def _item(url: str, day: int) -> Dict[str, Any]:
    return {
        "title": f"Story {url}",
        "url": url,
        "publishedAt": datetime(2026, 9, day, tzinfo=timezone.utc).isoformat(),
    }


def _gateway(provider, fetcher=None) -> ContentGateway:
    init_schema()
    return ContentGateway(
        NewsAPIConnector(provider=provider),
        MinifluxConnector(fetcher=fetcher or (lambda: [])),
    )


def test_fetch_returns_only_newly_stored_articles(store_env):
    gateway = _gateway(
        _provider(
            {
                1: [_item("https://ex.com/a", 1), _item("https://ex.com/b", 2)],
                2: [_item("https://ex.com/b", 2), _item("https://ex.com/c", 3)],
            }
        )
    )

    first = gateway.fetch_provider_articles("technology", 1)
    second = gateway.fetch_provider_articles("technology", 2)
    again = gateway.fetch_provider_articles("technology", 1)

    assert [a.url for a in first] == ["https://ex.com/a", "https://ex.com/b"]
    assert [a.url for a in second] == ["https://ex.com/c"]
    assert again == []


def test_cached_articles_are_newest_first_and_paged(store_env):
    gateway = _gateway(
        _provider({1: [_item("https://ex.com/old", 1), _item("https://ex.com/new", 5), _item("https://ex.com/mid", 3)]})
    )
    gateway.fetch_provider_articles("sports", 1)

    page = gateway.fetch_cached_articles(0, 2)
    rest = gateway.fetch_cached_articles(2, 2)

    assert [a.url for a in page] == ["https://ex.com/new", "https://ex.com/mid"]
    assert [a.url for a in rest] == ["https://ex.com/old"]
    assert all(a.category == "sports" for a in page)


def test_feed_reader_articles_share_the_cache(store_env):
    entries = [{"title": "Feed", "url": "https://feeds.example.com/1", "feed": {"category": {"title": "World"}}}]
    gateway = _gateway(_provider({}), fetcher=lambda: entries)

    stored = gateway.fetch_feed_reader_articles()
    cached = gateway.fetch_cached_articles()

    assert [a.url for a in stored] == ["https://feeds.example.com/1"]
    assert [a.category for a in cached] == ["World"]


def test_provider_failure_degrades_to_empty(store_env):
    def _broken(_query: str, _page: int):
        raise PermanentError("bad key")

    gateway = _gateway(_broken)

    assert gateway.fetch_provider_articles("health", 1) == []
    assert gateway.fetch_cached_articles() == []


def test_store_failure_degrades_to_empty(store_env):
    @contextmanager
    def _failing_session():
        raise OperationalError("SELECT 1", {}, Exception("database is locked"))
        yield  # pragma: no cover

    gateway = ContentGateway(
        NewsAPIConnector(provider=_provider({1: [_item("https://ex.com/a", 1)]})),
        MinifluxConnector(fetcher=lambda: []),
        session_factory=_failing_session,
    )

    assert gateway.fetch_provider_articles("health", 1) == []
    assert gateway.fetch_cached_articles() == []


def test_overlapping_batches_keep_every_new_url(store_env, monkeypatch):
    from gateway.services import gateway as gateway_mod

    init_schema()
    barrier = threading.Barrier(2, timeout=5)
    real_lookup = gateway_mod.get_existing_urls

    def _lookup_then_wait(session, urls):
        found = real_lookup(session, urls)
        # both writers have now decided "shared" is new
        barrier.wait()
        return found

    monkeypatch.setattr(gateway_mod, "get_existing_urls", _lookup_then_wait)

    pages = {
        "technology": [_item("https://ex.com/shared", 1), _item("https://ex.com/tech-only", 2)],
        "health": [_item("https://ex.com/shared", 1), _item("https://ex.com/health-only", 3)],
    }
    gateway = ContentGateway(
        NewsAPIConnector(provider=lambda query, _page: pages[query]),
        MinifluxConnector(fetcher=lambda: []),
    )

    with ThreadPoolExecutor(max_workers=2) as pool:
        results = list(pool.map(lambda q: gateway.fetch_provider_articles(q, 1), ["technology", "health"]))

    stored = sorted(a.url for batch in results for a in batch)
    cached = sorted(a.url for a in gateway.fetch_cached_articles(0, 10))

    assert cached == ["https://ex.com/health-only", "https://ex.com/shared", "https://ex.com/tech-only"]
    # the shared url is reported as new by exactly one writer
    assert stored == cached


def test_malformed_feed_entry_degrades_to_empty(store_env):
    entries = [{"url": "https://feeds.example.com/1", "feed": {"category": "Tech"}}, "not-an-entry"]
    gateway = _gateway(_provider({}), fetcher=lambda: entries)

    assert gateway.fetch_feed_reader_articles() == []
    assert gateway.fetch_cached_articles() == []
