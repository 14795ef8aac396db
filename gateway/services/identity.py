"""Identity surface of the store: sign-up, sign-in and profile updates."""

from __future__ import annotations

import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional, Sequence

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from gateway.db.models import UserAccount
from gateway.models.domain import Account
from gateway.repositories.accounts import (
    create_account,
    create_auth_session,
    get_account_by_email,
    get_account_by_token,
)
from gateway.settings import get_settings
from gateway.utils.logging import get_logger
from gateway.utils.passwords import PASSWORD_POLICY_MESSAGE, hash_password, validate_password, verify_password

logger = get_logger(__name__)

DUPLICATE_ACCOUNT_MESSAGE = "An account with this email already exists."


class IdentityError(Exception):
    """Base identity error."""


class WeakPasswordError(IdentityError):
    """Password does not satisfy the policy."""


class DuplicateAccountError(IdentityError):
    """An account with this email already exists."""


class InvalidCredentialsError(IdentityError):
    """Email/password pair (or token) is not valid."""


def _normalize_email(email: str) -> str:
    value = email.strip().lower()
    if "@" not in value:
        raise InvalidCredentialsError("A valid email address is required.")
    return value


def sign_up(
    session: Session,
    *,
    email: str,
    password: str,
    username: str,
    mobile_number: Optional[str] = None,
    preferences: Sequence[str] = (),
) -> Account:
    if not validate_password(password):
        raise WeakPasswordError(PASSWORD_POLICY_MESSAGE)
    address = _normalize_email(email)
    if get_account_by_email(session, address) is not None:
        raise DuplicateAccountError(DUPLICATE_ACCOUNT_MESSAGE)
    try:
        # a concurrent sign-up may insert the same email after the lookup
        with session.begin_nested():
            account = create_account(
                session,
                email=address,
                username=username.strip() or address.split("@")[0],
                password_hash=hash_password(password),
                mobile_number=mobile_number or None,
                preferences=preferences,
            )
    except IntegrityError as exc:
        raise DuplicateAccountError(DUPLICATE_ACCOUNT_MESSAGE) from exc
    logger.info("identity.signup", extra={"email": address})
    return Account.model_validate(account)


def sign_in(session: Session, *, email: str, password: str, now: Optional[datetime] = None) -> str:
    """Verify credentials and return a fresh bearer token."""
    address = _normalize_email(email)
    account = get_account_by_email(session, address)
    if account is None or not verify_password(password, account.password_hash):
        logger.info("identity.signin.rejected", extra={"email": address})
        raise InvalidCredentialsError("Invalid login credentials")
    current = now or datetime.now(timezone.utc)
    token = secrets.token_hex(32)
    create_auth_session(
        session,
        account,
        token,
        current + timedelta(hours=int(get_settings().session_duration_hours)),
    )
    logger.info("identity.signin", extra={"email": address})
    return token


def resolve_token(session: Session, token: str) -> UserAccount:
    account = get_account_by_token(session, token)
    if account is None:
        raise InvalidCredentialsError("Session expired or invalid.")
    return account


def update_profile(
    session: Session,
    account: UserAccount,
    *,
    username: Optional[str] = None,
    old_password: Optional[str] = None,
    new_password: Optional[str] = None,
    preferences: Optional[Sequence[str]] = None,
) -> Account:
    if new_password:
        if not old_password or not verify_password(old_password, account.password_hash):
            raise InvalidCredentialsError("Current password is incorrect.")
        if not validate_password(new_password):
            raise WeakPasswordError(PASSWORD_POLICY_MESSAGE)
        account.password_hash = hash_password(new_password)
    if username is not None and username.strip():
        account.username = username.strip()
    if preferences is not None:
        account.preferences = list(preferences)
    session.add(account)
    session.flush()
    logger.info("identity.profile.updated", extra={"email": account.email})
    return Account.model_validate(account)
