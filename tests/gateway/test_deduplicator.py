from __future__ import annotations

from gateway.services.deduplicator import deduplicate
from tests.conftest import make_article


def test_deduplicate_keeps_first_occurrence_in_order():
    items = [
        make_article("https://ex.com/a", title="first"),
        make_article("https://ex.com/b"),
        make_article("https://ex.com/a", title="second"),
    ]

    unique = deduplicate(items)

    assert [a.url for a in unique] == ["https://ex.com/a", "https://ex.com/b"]
    assert unique[0].title == "first"


def test_deduplicate_updates_seen_in_place():
    seen = {"https://ex.com/known"}

    first = deduplicate([make_article("https://ex.com/known"), make_article("https://ex.com/new")], seen)
    second = deduplicate([make_article("https://ex.com/new"), make_article("https://ex.com/later")], seen)

    assert [a.url for a in first] == ["https://ex.com/new"]
    assert [a.url for a in second] == ["https://ex.com/later"]
    assert seen == {"https://ex.com/known", "https://ex.com/new", "https://ex.com/later"}


def test_deduplicate_empty():
    assert deduplicate([]) == []
