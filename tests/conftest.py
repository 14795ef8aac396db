from __future__ import annotations

import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import pytest

ROOT = Path(__file__).resolve().parents[1]

if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from gateway.models.domain import Article  # noqa: E402
from gateway.settings import reset_settings_cache  # noqa: E402


@pytest.fixture
def store_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> str:
    """Point the store at a throwaway SQLite file and reload settings."""
    dsn = f"sqlite:///{tmp_path / 'news.db'}"
    monkeypatch.setenv("DATABASE_URL", dsn)
    monkeypatch.setenv("NEWS_API_KEY", "test-key")
    monkeypatch.setenv("MINIFLUX_API_KEY", "feed-token")
    monkeypatch.setenv("MINIFLUX_URL", "https://reader.example.com/v1/entries")
    monkeypatch.delenv("POPULATE_TARGETS", raising=False)
    reset_settings_cache()
    yield dsn
    reset_settings_cache()


def make_article(url: str, category: str = "technology", **overrides: Any) -> Article:
    fields: dict[str, Any] = {
        "url": url,
        "title": f"Title {url}",
        "description": f"Description {url}",
        "content": f"Content {url}",
        "image_url": f"https://img.example.com/{url}.png",
        "source_name": "Example Wire",
        "published_at": datetime(2026, 10, 1, tzinfo=timezone.utc),
        "category": category,
    }
    fields.update(overrides)
    return Article(**fields)
