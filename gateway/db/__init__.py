"""Database utilities for the news store."""

from .models import AuthSession, Base, NewsRecord, SurveyResponse, UserAccount  # noqa: F401
from .session import get_engine, get_sessionmaker, init_schema, session_scope  # noqa: F401

__all__ = [
    "AuthSession",
    "Base",
    "NewsRecord",
    "SurveyResponse",
    "UserAccount",
    "get_engine",
    "get_sessionmaker",
    "init_schema",
    "session_scope",
]
