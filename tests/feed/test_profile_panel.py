from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from feed.client import BackendError
from feed.profile import (
    PASSWORD_MISMATCH,
    SURVEY_RESPONSE_FAILED,
    Countdown,
    EditState,
    ProfilePanel,
    SurveyState,
)
from gateway.models.domain import Account, InterestPoint, SurveyQuestion


class _Clock:
    def __init__(self) -> None:
        self.now = datetime(2026, 10, 1, 8, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now


class _StubClient:
    def __init__(self) -> None:
        self.fail_update = False
        self.submitted = []
        self.profile_calls = []

    async def submit_survey(self, questions):
        self.submitted.append(list(questions))

    async def update_survey(self, question_id, rating):
        if self.fail_update:
            raise BackendError("Internal Server Error", 500)

    async def update_profile(self, **kwargs):
        self.profile_calls.append(kwargs)
        return Account(email="reader@example.com", username=kwargs["username"], preferences=kwargs["preferences"])

    async def fetch_interest_data(self):
        return [
            InterestPoint(category="Sports", value=3, percentage=60, previous_percentage=20),
            InterestPoint(category="Health", value=2, percentage=40, previous_percentage=80),
        ]


def _panel(client=None, clock=None) -> ProfilePanel:
    return ProfilePanel(
        Account(email="reader@example.com", username="reader", preferences=["Sports"]),
        [SurveyQuestion(id="q1", question="Useful?", rating=3), SurveyQuestion(id="q2", question="Fresh?", rating=3)],
        client or _StubClient(),  # type: ignore[arg-type]
        clock=clock or _Clock(),
    )


@pytest.mark.asyncio
async def test_submit_starts_twelve_hour_cooldown():
    clock = _Clock()
    client = _StubClient()
    panel = _panel(client, clock)
    panel.rate("q1", 5)

    assert await panel.submit_survey() is True

    assert panel.survey_state is SurveyState.SUBMITTED
    assert panel.next_survey_time == clock.now + timedelta(hours=12)
    assert panel.countdown == Countdown(12, 0)
    assert client.submitted[0][0].rating == 5
    assert await panel.submit_survey() is False

    clock.now += timedelta(hours=11, minutes=30)
    assert panel.tick() == Countdown(0, 30)

    clock.now += timedelta(minutes=30)
    assert panel.tick() is None
    assert panel.survey_state is SurveyState.ANSWERING
    assert panel.next_survey_time is None


@pytest.mark.asyncio
async def test_run_countdown_stops_when_cooldown_expires():
    clock = _Clock()
    panel = _panel(clock=clock)
    await panel.submit_survey()
    sleeps = []

    async def _sleep(seconds: float) -> None:
        sleeps.append(seconds)
        clock.now += timedelta(hours=6)

    await panel.run_countdown(sleep=_sleep, interval=60)

    assert sleeps == [60, 60]
    assert panel.survey_state is SurveyState.ANSWERING


def test_rate_rejects_out_of_range():
    with pytest.raises(ValueError):
        _panel().rate("q1", 6)


@pytest.mark.asyncio
async def test_failed_response_reverts_questions():
    client = _StubClient()
    client.fail_update = True
    panel = _panel(client)

    assert await panel.respond("q2", 1) is False
    assert [q.rating for q in panel.questions] == [3, 3]
    assert panel.error == SURVEY_RESPONSE_FAILED


@pytest.mark.asyncio
async def test_password_mismatch_stays_in_editing():
    client = _StubClient()
    panel = _panel(client)
    panel.toggle_editing()
    panel.edit_form.new_password = "Newpass1!"
    panel.edit_form.confirm_password = "Newpass2!"

    assert await panel.save_profile() is False
    assert panel.alert == PASSWORD_MISMATCH
    assert panel.edit_state is EditState.EDITING
    assert client.profile_calls == []


@pytest.mark.asyncio
async def test_save_profile_updates_user():
    panel = _panel()
    panel.toggle_editing()
    panel.edit_form.username = "renamed"
    panel.edit_form.preferences = ["Health"]

    assert await panel.save_profile() is True
    assert panel.user.username == "renamed"
    assert panel.edit_state is EditState.VIEWING


@pytest.mark.asyncio
async def test_interest_summaries():
    panel = _panel()
    assert panel.today_summary == "No reading activity yet today."

    await panel.load_interest_data()

    assert "Sports" in panel.today_summary
    assert panel.week_summary == "This week your engagement with Sports grew by 40 points."
    panel.toggle_today_summary()
    assert panel.show_today_summary is True
