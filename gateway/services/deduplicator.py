"""URL-based de-duplication helpers."""

from __future__ import annotations

import logging
from typing import Iterable, List, Protocol, TypeVar

logger = logging.getLogger(__name__)


class HasURL(Protocol):
    url: str


T = TypeVar("T", bound=HasURL)


def deduplicate(items: Iterable[T], seen: set[str] | None = None) -> List[T]:
    """Keep the first occurrence of each URL, preserving order.

    `seen` may carry URLs that are already known; it is updated in place.
    """
    known = seen if seen is not None else set()
    unique: List[T] = []
    for item in items:
        if item.url in known:
            logger.debug("dedupe.skip", extra={"url": item.url})
            continue
        known.add(item.url)
        unique.append(item)
    return unique
