from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from api.repositories import SurveyCooldownError, interest_trends, last_submission, submit_survey
from gateway.db.session import init_schema, session_scope
from gateway.models.domain import SurveyQuestion
from gateway.repositories.articles import save_articles
from tests.conftest import make_article

NOW = datetime(2026, 10, 15, 12, 0, tzinfo=timezone.utc)


def test_interest_trends_compare_weeks(store_env):
    init_schema()
    this_week = NOW - timedelta(days=2)
    last_week = NOW - timedelta(days=9)
    with session_scope() as session:
        save_articles(
            session,
            [
                make_article("t1", "technology", published_at=this_week),
                make_article("t2", "technology", published_at=this_week),
                make_article("t3", "technology", published_at=this_week),
                make_article("s1", "sports", published_at=this_week),
                make_article("s2", "sports", published_at=last_week),
                make_article("h1", "health", published_at=last_week),
                make_article("old", "health", published_at=NOW - timedelta(days=30)),
            ],
        )

    with session_scope() as session:
        points = interest_trends(session, now=NOW)

    by_category = {p.category: p for p in points}
    assert [p.category for p in points] == ["technology", "sports", "health"]
    assert by_category["technology"].percentage == 75.0
    assert by_category["technology"].previous_percentage == 0.0
    assert by_category["sports"].percentage == 25.0
    assert by_category["sports"].previous_percentage == 50.0
    assert by_category["health"].value == 0


def test_survey_submission_cooldown(store_env):
    init_schema()
    questions = [SurveyQuestion(id="q1", question="Useful?", rating=5)]
    with session_scope() as session:
        next_at = submit_survey(session, "reader@example.com", questions, now=NOW)
        assert next_at == NOW + timedelta(hours=12)
        assert last_submission(session, "reader@example.com") == NOW

        with pytest.raises(SurveyCooldownError):
            submit_survey(session, "reader@example.com", questions, now=NOW + timedelta(hours=11))

        submit_survey(session, "reader@example.com", questions, now=NOW + timedelta(hours=12))
