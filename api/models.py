from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field, field_validator


class PopulateSummary(BaseModel):
    provider: int
    feed_reader: int
    total: int


class ArticleContent(BaseModel):
    url: str
    content: str


class SignUpRequest(BaseModel):
    email: str = Field(..., min_length=3)
    password: str
    username: str = ""
    mobile_number: str | None = None
    preferences: list[str] = Field(default_factory=list)


class SignInRequest(BaseModel):
    email: str
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


class SurveyUpdate(BaseModel):
    id: str
    rating: int = Field(..., ge=1, le=5)


class SurveyAck(BaseModel):
    status: str = "ok"
    next_survey_at: datetime | None = None


class ProfileUpdate(BaseModel):
    username: str | None = None
    old_password: str | None = None
    new_password: str | None = None
    preferences: list[str] | None = None

    @field_validator("preferences")
    @classmethod
    def dedupe_preferences(cls, value: list[str] | None) -> list[str] | None:
        if value is None:
            return None
        return list(dict.fromkeys(p.strip() for p in value if p.strip()))


class ChatRequest(BaseModel):
    article_url: str = Field(..., min_length=1)
    message: str = Field(..., min_length=1)
    session_id: str | None = None


class ChatResponse(BaseModel):
    session_id: str
    reply: str
