"""Repositories for persisting and paging cached articles."""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, List, Sequence

from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from gateway.db.models import NewsRecord
from gateway.models.domain import PLACEHOLDER_IMAGE, Article


def get_existing_urls(session: Session, urls: Iterable[str]) -> set[str]:
    wanted = list(urls)
    if not wanted:
        return set()
    stmt = select(NewsRecord.url).where(NewsRecord.url.in_(wanted))
    return {row[0] for row in session.execute(stmt)}


_UPSERT_INSERTS = {"sqlite": sqlite_insert, "postgresql": pg_insert}


def _record_values(article: Article) -> dict:
    return {
        "url": article.url,
        "title": article.title,
        "description": article.description,
        "content": article.content,
        "image_url": article.image_url,
        "source_name": article.source_name,
        "published_at": article.published_at,
        "category": article.category,
        "likes": article.likes,
        "dislikes": article.dislikes,
    }


def save_articles(session: Session, items: Sequence[Article]) -> List[Article]:
    """Insert articles whose URL is not stored yet; return the ones actually inserted.

    Concurrent writers may race on the same URL, so a conflicting row is
    skipped instead of failing the whole batch.
    """
    insert_for = _UPSERT_INSERTS.get(session.get_bind().dialect.name)
    saved: List[Article] = []
    for article in items:
        if insert_for is not None:
            stmt = (
                insert_for(NewsRecord)
                .values(**_record_values(article))
                .on_conflict_do_nothing(index_elements=["url"])
            )
            if session.execute(stmt).rowcount:
                saved.append(article)
            continue
        try:
            with session.begin_nested():
                session.add(NewsRecord(**_record_values(article)))
        except IntegrityError:
            continue
        saved.append(article)
    return saved


def list_page(session: Session, offset: int, limit: int) -> List[NewsRecord]:
    stmt = (
        select(NewsRecord)
        .order_by(NewsRecord.published_at.desc(), NewsRecord.url)
        .offset(max(offset, 0))
        .limit(max(limit, 0))
    )
    return list(session.scalars(stmt).all())


def count_by_category(session: Session, start: datetime, end: datetime) -> dict[str, int]:
    stmt = (
        select(NewsRecord.category, func.count(NewsRecord.id))
        .where(NewsRecord.published_at >= start, NewsRecord.published_at < end)
        .group_by(NewsRecord.category)
    )
    return {category: int(total) for category, total in session.execute(stmt)}


def to_article(record: NewsRecord, placeholder: str = PLACEHOLDER_IMAGE) -> Article:
    return Article(
        url=record.url,
        title=record.title,
        description=record.description,
        content=record.content,
        image_url=record.image_url or placeholder,
        source_name=record.source_name,
        published_at=record.published_at,
        category=record.category,
        likes=record.likes,
        dislikes=record.dislikes,
    )
