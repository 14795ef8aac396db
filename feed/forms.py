"""Sign-in and registration form state."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from gateway.utils.logging import get_logger
from gateway.utils.passwords import PASSWORD_POLICY_MESSAGE, validate_password

from .client import BackendClient, BackendError

logger = get_logger(__name__)

NEWS_CATEGORIES = ("Politics", "Technology", "Business", "Sports", "Entertainment", "Science", "Health")
REGISTER_SUCCESS = "Account created successfully! Redirecting to login..."


@dataclass
class LoginForm:
    email: str = ""
    password: str = ""
    error: str = ""
    is_loading: bool = False

    async def submit(self, client: BackendClient) -> bool:
        self.is_loading = True
        self.error = ""
        try:
            await client.sign_in(self.email.strip(), self.password)
        except BackendError as exc:
            logger.info("auth.login.failed", extra={"error": exc.message})
            self.error = f"Login failed: {exc.message}"
            return False
        finally:
            self.is_loading = False
        return True


@dataclass
class RegistrationForm:
    username: str = ""
    email: str = ""
    password: str = ""
    mobile_number: str = ""
    preferences: List[str] = field(default_factory=list)
    error: str = ""
    success: str = ""
    is_loading: bool = False

    def toggle_preference(self, category: str) -> None:
        if category in self.preferences:
            self.preferences = [p for p in self.preferences if p != category]
        else:
            self.preferences = [*self.preferences, category]

    def validate(self) -> Optional[str]:
        if not validate_password(self.password):
            return PASSWORD_POLICY_MESSAGE
        return None

    async def submit(self, client: BackendClient) -> bool:
        """Validate locally first; the backend is only called for a valid form."""
        problem = self.validate()
        if problem:
            self.error = problem
            return False
        self.is_loading = True
        self.error = ""
        self.success = ""
        try:
            await client.sign_up(
                email=self.email.strip(),
                password=self.password,
                username=self.username,
                mobile_number=self.mobile_number,
                preferences=self.preferences,
            )
        except BackendError as exc:
            logger.info("auth.register.failed", extra={"error": exc.message})
            self.error = f"Registration failed: {exc.message}"
            return False
        finally:
            self.is_loading = False
        self.success = REGISTER_SUCCESS
        self.username = self.email = self.password = self.mobile_number = ""
        self.preferences = []
        return True
