"""Article feed controller: pagination, category filter and the visible list.

The controller owns the in-memory article collection and orchestrates two
flows against the gateway:

- populate: pull fresh provider pages into the store (concurrent fan-out)
- load: read one cached page, filter by category, de-duplicate and merge

Gateway calls are blocking, so they run on the default executor and the
controller itself stays on the event loop.
"""

from __future__ import annotations

import asyncio
from typing import Any, Callable, List, Optional, Protocol, Sequence, Tuple

from gateway.models.domain import Article
from gateway.services.deduplicator import deduplicate
from gateway.utils.logging import get_logger

NO_NEWS_MESSAGE = "No news available for this category yet. Please wait for news to be fetched."
LOAD_FAILED_MESSAGE = "Failed to load news. Showing cached data if available."

CATEGORIES: Tuple[str, ...] = ("technology", "sports", "health")
DEFAULT_POPULATE_TARGETS: Tuple[Tuple[str, int], ...] = tuple(
    (category, page) for category in CATEGORIES for page in (1, 2)
)


class ArticleSource(Protocol):
    def fetch_provider_articles(self, query: str, page: int) -> List[Article]: ...
    def fetch_feed_reader_articles(self) -> List[Article]: ...
    def fetch_cached_articles(self, offset: int, limit: int) -> List[Article]: ...


class ArticleFeedController:
    def __init__(
        self,
        gateway: ArticleSource,
        *,
        page_size: int = 20,
        populate_targets: Sequence[Tuple[str, int]] = DEFAULT_POPULATE_TARGETS,
        include_feed_reader: bool = True,
    ) -> None:
        self.gateway = gateway
        self.page_size = page_size
        self.populate_targets = list(populate_targets)
        self.include_feed_reader = include_feed_reader

        self.articles: List[Article] = []
        self.page = 1
        self.category = ""
        self.loading = False
        self.error: Optional[str] = None
        self.populating = False
        # set whenever no populate is running
        self._idle = asyncio.Event()
        self._idle.set()
        # bumped on every filter change; loads started under an older value are discarded
        self._generation = 0
        self.logger = get_logger(__name__)

    async def _call(self, fn: Callable[..., Any], *args: Any) -> Any:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, fn, *args)

    async def populate(self, *, reload: bool = True) -> bool:
        """Fan out provider fetches, wait for all, then reload page one.

        Returns False when another populate is already running.
        """
        if self.populating:
            self.logger.info("feed.populate.skip", extra={"reason": "in_flight"})
            return False
        self.populating = True
        self.loading = True
        self._idle.clear()
        try:
            calls = [self._call(self.gateway.fetch_provider_articles, c, p) for c, p in self.populate_targets]
            if self.include_feed_reader:
                calls.append(self._call(self.gateway.fetch_feed_reader_articles))
            results = await asyncio.gather(*calls, return_exceptions=True)
            stored = 0
            for result in results:
                if isinstance(result, BaseException):
                    self.logger.error("feed.populate.failed", extra={"error": repr(result)})
                    continue
                stored += len(result)
            self.logger.info("feed.populate.done", extra={"calls": len(calls), "stored": stored})
        finally:
            self.populating = False
            self.loading = False
            self._idle.set()
        if reload:
            await self.load_cached_page(reset=True)
        return True

    async def load_cached_page(self, reset: bool = False, category: Optional[str] = None) -> List[Article]:
        if self.populating:
            self.logger.info("feed.load.skip", extra={"reason": "populate_in_progress"})
            return self.articles

        generation = self._generation
        active = category if category is not None else self.category
        offset = 0 if reset else (self.page - 1) * self.page_size
        self.loading = True
        self.error = None
        self.logger.info(
            "feed.load.start",
            extra={"category": active or "all", "reset": reset, "offset": offset},
        )
        try:
            cached: List[Article] = await self._call(self.gateway.fetch_cached_articles, offset, self.page_size)
        except Exception as exc:
            self.logger.error("feed.load.failed", extra={"error": str(exc)})
            self.error = LOAD_FAILED_MESSAGE
            return self.articles
        finally:
            self.loading = False

        if generation != self._generation:
            self.logger.info("feed.load.stale", extra={"category": active or "all"})
            return self.articles

        filtered = [a for a in cached if a.category == active] if active else list(cached)
        unique = deduplicate(filtered)
        if reset:
            self.articles = unique
        else:
            self.articles = deduplicate([*self.articles, *unique])

        if reset and not unique:
            self.error = NO_NEWS_MESSAGE
        return self.articles

    async def change_category(self, category: str) -> List[Article]:
        """Filter-changed event: repopulate, then reload page one for the new filter.

        When a populate is already running the event waits for it instead of
        starting another. Only the most recent filter change reloads.
        """
        self.category = category
        self.page = 1
        self._generation += 1
        generation = self._generation
        if not await self.populate(reload=False):
            await self._idle.wait()
        if generation != self._generation:
            self.logger.info("feed.category.superseded", extra={"category": category})
            return self.articles
        return await self.load_cached_page(reset=True, category=category)

    async def load_more(self) -> List[Article]:
        self.page += 1
        return await self.load_cached_page(reset=False)
