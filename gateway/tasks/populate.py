"""Celery task that pulls fresh provider articles into the store."""

from __future__ import annotations

from typing import Callable, Dict, Sequence

from celery import shared_task

from gateway.db.session import init_schema
from gateway.services.gateway import ContentGateway
from gateway.settings import PopulateTarget, get_settings
from gateway.utils.logging import get_logger

# Pluggable for tests; must return a ContentGateway-compatible object.
GATEWAY_FACTORY: Callable[[], ContentGateway] | None = None


def _get_gateway() -> ContentGateway:
    if GATEWAY_FACTORY is not None:
        return GATEWAY_FACTORY()
    return ContentGateway.from_settings()


def run_population(gateway: ContentGateway, targets: Sequence[PopulateTarget]) -> Dict[str, int]:
    """Fetch every target page plus the feed reader; count newly stored articles per provider."""
    logger = get_logger(__name__)
    logger.info("populate.start", extra={"targets": len(targets)})
    provider = 0
    for target in targets:
        provider += len(gateway.fetch_provider_articles(target.category, target.page))
    feed_reader = len(gateway.fetch_feed_reader_articles())
    logger.info("populate.done", extra={"provider": provider, "feed_reader": feed_reader})
    return {"provider": provider, "feed_reader": feed_reader}


def populate_core() -> int:
    """Run every configured provider fetch once; return the count of new articles."""
    settings = get_settings()
    init_schema(settings)
    counts = run_population(_get_gateway(), settings.populate_targets)
    return sum(counts.values())


@shared_task(name="gateway.tasks.populate.populate_store")
def populate_store() -> int:  # pragma: no cover - wrapper
    return populate_core()
