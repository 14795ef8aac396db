from __future__ import annotations

import pytest

from gateway.settings import GatewaySettings, PopulateTarget, get_settings, reset_settings_cache


@pytest.fixture(autouse=True)
def _clean_cache():
    reset_settings_cache()
    yield
    reset_settings_cache()


def test_defaults_cover_three_categories_two_pages(monkeypatch):
    monkeypatch.delenv("POPULATE_TARGETS", raising=False)
    settings = get_settings()

    pairs = [(t.category, t.page) for t in settings.populate_targets]
    assert pairs == [
        ("technology", 1),
        ("technology", 2),
        ("sports", 1),
        ("sports", 2),
        ("health", 1),
        ("health", 2),
    ]
    assert settings.description_length == 200
    assert settings.placeholder_image == "/placeholder.png"
    assert settings.page_size == 20


def test_populate_targets_parsed_from_json(monkeypatch):
    monkeypatch.setenv("POPULATE_TARGETS", '[{"category": " Science ", "page": 3}]')
    settings = get_settings()

    assert settings.populate_targets == [PopulateTarget(category="science", page=3)]


def test_duplicate_populate_targets_rejected(monkeypatch):
    monkeypatch.setenv(
        "POPULATE_TARGETS",
        '[{"category": "sports", "page": 1}, {"category": "SPORTS", "page": 1}]',
    )
    with pytest.raises(RuntimeError, match="Environment validation failed"):
        get_settings()


def test_page_size_above_limit_rejected(monkeypatch):
    monkeypatch.setenv("FEED_PAGE_SIZE", "101")
    with pytest.raises(RuntimeError):
        get_settings()


def test_settings_are_frozen():
    settings = GatewaySettings(database_url="sqlite:///./x.db")
    with pytest.raises(Exception):
        settings.page_size = 5  # type: ignore[misc]
