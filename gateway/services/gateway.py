"""Remote content gateway: providers in, store out.

The gateway is constructed explicitly (connectors and a session factory are
injected) and owned by the application entry point. Every public operation is
non-raising: provider, network and store failures are logged and degrade to
an empty result.
"""

from __future__ import annotations

import uuid
from contextlib import AbstractContextManager
from typing import Callable, List, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from gateway.connectors.base import BaseConnector, ConnectorError
from gateway.connectors.miniflux import MinifluxConnector
from gateway.connectors.news_api import NewsAPIConnector
from gateway.db.session import session_scope
from gateway.models.domain import Article
from gateway.repositories.articles import get_existing_urls, list_page, save_articles, to_article
from gateway.settings import GatewaySettings, get_settings
from gateway.utils.logging import get_logger

SessionFactory = Callable[[], AbstractContextManager[Session]]


class ContentGateway:
    """Fetches provider articles, caches new ones and pages the cache."""

    def __init__(
        self,
        news_api: BaseConnector,
        feed_reader: BaseConnector,
        *,
        session_factory: Optional[SessionFactory] = None,
        settings: Optional[GatewaySettings] = None,
    ) -> None:
        self.news_api = news_api
        self.feed_reader = feed_reader
        self.settings = settings or get_settings()
        self._session_factory = session_factory or (lambda: session_scope(self.settings))
        self.logger = get_logger(__name__)

    @classmethod
    def from_settings(cls, settings: Optional[GatewaySettings] = None) -> "ContentGateway":
        config = settings or get_settings()
        return cls(
            NewsAPIConnector(settings=config),
            MinifluxConnector(settings=config),
            settings=config,
        )

    def fetch_provider_articles(self, query: str, page: int) -> List[Article]:
        """Pull one keyword-search page and return the articles newly stored."""
        return self._fetch_and_store(self.news_api, query, page)

    def fetch_feed_reader_articles(self) -> List[Article]:
        """Pull the feed-reader entries and return the articles newly stored."""
        return self._fetch_and_store(self.feed_reader, None, 1)

    def fetch_cached_articles(self, offset: int = 0, limit: Optional[int] = None) -> List[Article]:
        """Read one page of the cache, newest first."""
        size = int(limit if limit is not None else self.settings.page_size)
        try:
            with self._session_factory() as session:
                records = list_page(session, offset, size)
                return [to_article(record, self.settings.placeholder_image) for record in records]
        except SQLAlchemyError as exc:
            self.logger.error(
                "gateway.cache.failed",
                extra={"offset": offset, "limit": size, "error": str(exc)},
            )
            return []

    def _fetch_and_store(self, connector: BaseConnector, query: Optional[str], page: int) -> List[Article]:
        trace_id = uuid.uuid4().hex
        try:
            fetched = connector.fetch(query, page, max_attempts=int(self.settings.provider_max_attempts))
        except (ConnectorError, ValueError) as exc:
            self.logger.error(
                "gateway.fetch.failed",
                extra={"trace_id": trace_id, "source": connector.source, "query": query, "page": page, "error": str(exc)},
            )
            return []

        try:
            stored = self._store_new(fetched)
        except SQLAlchemyError as exc:
            self.logger.error(
                "gateway.store.failed",
                extra={"trace_id": trace_id, "source": connector.source, "error": str(exc)},
            )
            return []

        self.logger.info(
            "gateway.fetch.saved",
            extra={
                "trace_id": trace_id,
                "source": connector.source,
                "query": query,
                "page": page,
                "fetched": len(fetched),
                "saved": len(stored),
            },
        )
        return stored

    def _store_new(self, articles: Sequence[Article]) -> List[Article]:
        if not articles:
            return []
        with self._session_factory() as session:
            existing = get_existing_urls(session, (a.url for a in articles))
            new_articles = [a for a in articles if a.url not in existing]
            if not new_articles:
                return []
            # rows another writer stored since the lookup are skipped
            return save_articles(session, new_articles)
