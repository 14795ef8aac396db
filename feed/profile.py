"""Profile & feedback panel state: survey cooldown, profile editing, summaries."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Awaitable, Callable, List, Optional, Sequence

from gateway.models.domain import Account, InterestPoint, SurveyQuestion
from gateway.utils.logging import get_logger

from .client import BackendClient, BackendError

logger = get_logger(__name__)

SURVEY_COOLDOWN = timedelta(hours=12)
PASSWORD_MISMATCH = "Passwords do not match!"
SURVEY_SUBMIT_FAILED = "Failed to submit survey"
SURVEY_RESPONSE_FAILED = "Failed to submit survey response"
PROFILE_UPDATE_FAILED = "Failed to update profile"
INTEREST_LOAD_FAILED = "Failed to load interest data"

Clock = Callable[[], datetime]
Sleeper = Callable[[float], Awaitable[None]]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SurveyState(str, Enum):
    ANSWERING = "answering"
    SUBMITTED = "submitted"


class EditState(str, Enum):
    VIEWING = "viewing"
    EDITING = "editing"


@dataclass(frozen=True)
class Countdown:
    hours: int
    minutes: int


@dataclass
class EditForm:
    username: str
    old_password: str = ""
    new_password: str = ""
    confirm_password: str = ""
    preferences: List[str] = field(default_factory=list)


class ProfilePanel:
    def __init__(
        self,
        user: Account,
        survey_questions: Sequence[SurveyQuestion],
        client: BackendClient,
        *,
        clock: Clock = _utcnow,
    ) -> None:
        self.user = user
        self.client = client
        self._clock = clock
        self._initial_questions = [q.model_copy() for q in survey_questions]
        self.questions: List[SurveyQuestion] = [q.model_copy() for q in survey_questions]

        self.survey_state = SurveyState.ANSWERING
        self.next_survey_time: Optional[datetime] = None
        self.countdown = Countdown(0, 0)

        self.edit_state = EditState.VIEWING
        self.edit_form = self._fresh_form()
        self.alert: Optional[str] = None
        self.error: Optional[str] = None

        self.show_today_summary = False
        self.show_week_summary = False
        self.interest_data: List[InterestPoint] = []
        self.is_loading = False

    # survey

    def rate(self, question_id: str, rating: int) -> None:
        if not 1 <= rating <= 5:
            raise ValueError("rating must be between 1 and 5")
        self.questions = [
            q.model_copy(update={"rating": rating}) if q.id == question_id else q for q in self.questions
        ]

    async def submit_survey(self) -> bool:
        if self.survey_state is SurveyState.SUBMITTED:
            return False
        try:
            await self.client.submit_survey(self.questions)
        except BackendError as exc:
            logger.warning("profile.survey.failed", extra={"error": exc.message})
            self.error = SURVEY_SUBMIT_FAILED
            return False
        self.survey_state = SurveyState.SUBMITTED
        self.next_survey_time = self._clock() + SURVEY_COOLDOWN
        self.tick()
        return True

    def tick(self) -> Optional[Countdown]:
        """Recompute the countdown; reopen the survey once the cooldown has passed."""
        if self.next_survey_time is None:
            return None
        remaining = self.next_survey_time - self._clock()
        if remaining <= timedelta(0):
            self.survey_state = SurveyState.ANSWERING
            self.next_survey_time = None
            self.countdown = Countdown(0, 0)
            return None
        seconds = int(remaining.total_seconds())
        self.countdown = Countdown(seconds // 3600, (seconds % 3600) // 60)
        return self.countdown

    async def run_countdown(self, sleep: Sleeper = asyncio.sleep, interval: float = 1.0) -> None:
        while self.tick() is not None:
            await sleep(interval)

    async def respond(self, question_id: str, rating: int) -> bool:
        self.rate(question_id, rating)
        try:
            await self.client.update_survey(question_id, rating)
        except BackendError as exc:
            logger.warning("profile.survey_response.failed", extra={"question_id": question_id, "error": exc.message})
            self.questions = [q.model_copy() for q in self._initial_questions]
            self.error = SURVEY_RESPONSE_FAILED
            return False
        return True

    # profile editing

    def _fresh_form(self) -> EditForm:
        return EditForm(username=self.user.username, preferences=list(self.user.preferences))

    def toggle_editing(self) -> None:
        if self.edit_state is EditState.EDITING:
            self.cancel_editing()
            return
        self.edit_form = self._fresh_form()
        self.alert = None
        self.edit_state = EditState.EDITING

    def cancel_editing(self) -> None:
        self.edit_state = EditState.VIEWING
        self.alert = None

    async def save_profile(self) -> bool:
        form = self.edit_form
        if form.new_password and form.new_password != form.confirm_password:
            self.alert = PASSWORD_MISMATCH
            return False
        try:
            updated = await self.client.update_profile(
                username=form.username,
                old_password=form.old_password,
                new_password=form.new_password,
                preferences=form.preferences,
            )
        except BackendError as exc:
            logger.warning("profile.update.failed", extra={"error": exc.message})
            self.error = PROFILE_UPDATE_FAILED
            return False
        self.user = updated
        self.edit_state = EditState.VIEWING
        self.alert = None
        return True

    # summaries & interest chart

    def toggle_today_summary(self) -> None:
        self.show_today_summary = not self.show_today_summary

    def toggle_week_summary(self) -> None:
        self.show_week_summary = not self.show_week_summary

    async def load_interest_data(self) -> List[InterestPoint]:
        self.is_loading = True
        try:
            self.interest_data = await self.client.fetch_interest_data()
        except BackendError as exc:
            logger.warning("profile.interest.failed", extra={"error": exc.message})
            self.error = INTEREST_LOAD_FAILED
        finally:
            self.is_loading = False
        return self.interest_data

    @property
    def today_summary(self) -> str:
        if not self.interest_data:
            return "No reading activity yet today."
        top = max(self.interest_data, key=lambda p: p.percentage)
        return f"Today you've shown the most interest in {top.category} ({top.percentage:.0f}% of your reading)."

    @property
    def week_summary(self) -> str:
        if not self.interest_data:
            return "No reading activity recorded this week."
        rising = max(self.interest_data, key=lambda p: p.percentage - p.previous_percentage)
        delta = rising.percentage - rising.previous_percentage
        if delta <= 0:
            return "Your reading interests held steady this week."
        return f"This week your engagement with {rising.category} grew by {delta:.0f} points."
