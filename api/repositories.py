from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Sequence

from sqlalchemy import select
from sqlalchemy.orm import Session

from gateway.db.models import SurveyResponse
from gateway.models.domain import InterestPoint, SurveyQuestion
from gateway.repositories.articles import count_by_category

logger = logging.getLogger(__name__)

SURVEY_COOLDOWN = timedelta(hours=12)
INTEREST_WINDOW = timedelta(days=7)


class SurveyCooldownError(Exception):
    def __init__(self, next_survey_at: datetime):
        super().__init__(f"Next survey available at {next_survey_at.isoformat()}")
        self.next_survey_at = next_survey_at


def _aware(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def _get_response(session: Session, user_key: str, question_id: str) -> SurveyResponse | None:
    return session.scalars(
        select(SurveyResponse).where(
            SurveyResponse.user_key == user_key,
            SurveyResponse.question_id == question_id,
        )
    ).first()


def last_submission(session: Session, user_key: str) -> datetime | None:
    stmt = (
        select(SurveyResponse.submitted_at)
        .where(SurveyResponse.user_key == user_key, SurveyResponse.submitted_at.is_not(None))
        .order_by(SurveyResponse.submitted_at.desc())
        .limit(1)
    )
    value = session.scalars(stmt).first()
    return _aware(value) if value else None


def submit_survey(
    session: Session, user_key: str, questions: Sequence[SurveyQuestion], now: datetime | None = None
) -> datetime:
    """Store a full batch; returns the time the next survey opens."""
    current = now or datetime.now(timezone.utc)
    previous = last_submission(session, user_key)
    if previous is not None and previous + SURVEY_COOLDOWN > current:
        raise SurveyCooldownError(previous + SURVEY_COOLDOWN)
    for question in questions:
        row = _get_response(session, user_key, question.id)
        if row is None:
            row = SurveyResponse(user_key=user_key, question_id=question.id)
            session.add(row)
        row.question = question.question
        row.rating = question.rating
        row.submitted_at = current
    session.flush()
    logger.info("survey.submitted", extra={"user": user_key, "questions": len(questions)})
    return current + SURVEY_COOLDOWN


def update_survey_response(session: Session, user_key: str, question_id: str, rating: int) -> None:
    row = _get_response(session, user_key, question_id)
    if row is None:
        row = SurveyResponse(user_key=user_key, question_id=question_id, rating=rating)
        session.add(row)
    row.rating = rating
    session.flush()


def interest_trends(session: Session, now: datetime | None = None) -> list[InterestPoint]:
    """Per-category share of stored articles: last 7 days vs the 7 days before."""
    current_end = now or datetime.now(timezone.utc)
    current_start = current_end - INTEREST_WINDOW
    previous_start = current_start - INTEREST_WINDOW

    current = count_by_category(session, current_start, current_end)
    previous = count_by_category(session, previous_start, current_start)
    current_total = sum(current.values())
    previous_total = sum(previous.values())

    points = [
        InterestPoint(
            category=category or "general",
            value=current.get(category, 0),
            percentage=round(100.0 * current.get(category, 0) / current_total, 1) if current_total else 0.0,
            previous_percentage=(
                round(100.0 * previous.get(category, 0) / previous_total, 1) if previous_total else 0.0
            ),
        )
        for category in set(current) | set(previous)
    ]
    return sorted(points, key=lambda p: (-p.value, p.category))
