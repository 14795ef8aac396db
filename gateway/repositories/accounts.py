"""Repositories for user accounts and bearer sessions."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Sequence

from sqlalchemy import select
from sqlalchemy.orm import Session

from gateway.db.models import AuthSession, UserAccount


def get_account_by_email(session: Session, email: str) -> UserAccount | None:
    return session.scalars(select(UserAccount).where(UserAccount.email == email)).first()


def create_account(
    session: Session,
    *,
    email: str,
    username: str,
    password_hash: str,
    mobile_number: str | None,
    preferences: Sequence[str],
) -> UserAccount:
    account = UserAccount(
        email=email,
        username=username,
        password_hash=password_hash,
        mobile_number=mobile_number,
        preferences=list(preferences),
    )
    session.add(account)
    session.flush()
    return account


def create_auth_session(session: Session, account: UserAccount, token: str, expires_at: datetime) -> AuthSession:
    auth = AuthSession(token=token, user_id=account.id, expires_at=expires_at)
    session.add(auth)
    session.flush()
    return auth


def get_account_by_token(session: Session, token: str, now: datetime | None = None) -> UserAccount | None:
    current = now or datetime.now(timezone.utc)
    auth = session.scalars(select(AuthSession).where(AuthSession.token == token)).first()
    if auth is None:
        return None
    expires_at = auth.expires_at
    if expires_at.tzinfo is None:
        # sqlite drops tzinfo on round-trip
        expires_at = expires_at.replace(tzinfo=timezone.utc)
    if expires_at <= current:
        return None
    return session.get(UserAccount, auth.user_id)
