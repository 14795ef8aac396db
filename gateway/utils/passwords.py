"""Password policy and salted PBKDF2 hashing."""

from __future__ import annotations

import hashlib
import hmac
import re
import secrets

MIN_PASSWORD_LENGTH = 8
PBKDF2_ITERATIONS = 100_000
PASSWORD_POLICY_MESSAGE = (
    "Password must be at least 8 characters long and include a number and a special character."
)

_HAS_NUMBER = re.compile(r"\d")
_HAS_SPECIAL = re.compile(r"[!@#$%^&*(),.?\":{}|<>]")


def validate_password(password: str) -> bool:
    return (
        len(password) >= MIN_PASSWORD_LENGTH
        and bool(_HAS_NUMBER.search(password))
        and bool(_HAS_SPECIAL.search(password))
    )


def hash_password(password: str) -> str:
    salt = secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode(), salt.encode(), PBKDF2_ITERATIONS)
    return f"{salt}${digest.hex()}"


def verify_password(password: str, stored: str) -> bool:
    salt, _, expected = stored.partition("$")
    if not salt or not expected:
        return False
    digest = hashlib.pbkdf2_hmac("sha256", password.encode(), salt.encode(), PBKDF2_ITERATIONS)
    return hmac.compare_digest(digest.hex(), expected)
