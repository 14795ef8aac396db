"""Async HTTP client for the backend endpoints used by the UI state machines."""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

import httpx

from gateway.models.domain import Account, InterestPoint, SurveyQuestion
from gateway.utils.logging import get_logger

logger = get_logger(__name__)


class BackendError(Exception):
    """A backend call failed (network, non-2xx status or bad payload)."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def _error_detail(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return resp.text or resp.reason_phrase
    if isinstance(body, dict) and body.get("detail"):
        detail = body["detail"]
        return detail if isinstance(detail, str) else str(detail)
    return resp.reason_phrase


class BackendClient:
    """Thin request/response wrapper; one short-lived httpx client per call."""

    def __init__(
        self,
        base_url: str,
        *,
        token: Optional[str] = None,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self._transport = transport

    @property
    def is_logged_in(self) -> bool:
        return bool(self.token)

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        async with httpx.AsyncClient(
            base_url=self.base_url, timeout=self.timeout, transport=self._transport
        ) as client:
            try:
                resp = await client.request(method, path, headers=self._headers(), **kwargs)
            except httpx.HTTPError as exc:
                logger.warning("backend.request.failed", extra={"path": path, "error": str(exc)})
                raise BackendError(f"Request to {path} failed: {exc}") from exc
        if resp.status_code >= 400:
            detail = _error_detail(resp)
            logger.warning("backend.request.rejected", extra={"path": path, "status": resp.status_code})
            raise BackendError(detail, resp.status_code)
        if resp.status_code == 204 or not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as exc:
            raise BackendError(f"Invalid JSON from {path}") from exc

    async def sign_up(
        self,
        *,
        email: str,
        password: str,
        username: str,
        mobile_number: str = "",
        preferences: Sequence[str] = (),
    ) -> Account:
        data = await self._request(
            "POST",
            "/api/auth/signup",
            json={
                "email": email,
                "password": password,
                "username": username,
                "mobile_number": mobile_number or None,
                "preferences": list(preferences),
            },
        )
        return Account.model_validate(data)

    async def sign_in(self, email: str, password: str) -> str:
        data = await self._request("POST", "/api/auth/signin", json={"email": email, "password": password})
        self.token = data["access_token"]
        return self.token

    def sign_out(self) -> None:
        self.token = None

    async def fetch_interest_data(self) -> List[InterestPoint]:
        data = await self._request("GET", "/api/interest-data")
        return [InterestPoint.model_validate(item) for item in data or []]

    async def submit_survey(self, questions: Sequence[SurveyQuestion]) -> None:
        await self._request("POST", "/api/submit-survey", json=[q.model_dump() for q in questions])

    async def update_survey(self, question_id: str, rating: int) -> None:
        await self._request("POST", "/api/update-survey", json={"id": question_id, "rating": rating})

    async def update_profile(
        self,
        *,
        username: str,
        old_password: str = "",
        new_password: str = "",
        preferences: Sequence[str] = (),
    ) -> Account:
        payload: Dict[str, Any] = {
            "username": username,
            "old_password": old_password or None,
            "preferences": list(preferences),
        }
        if new_password:
            payload["new_password"] = new_password
        data = await self._request("PUT", "/api/update-profile", json=payload)
        return Account.model_validate(data)

    async def fetch_article_content(self, url: str) -> str:
        data = await self._request("GET", "/api/news/content", params={"url": url})
        return str(data["content"])

    async def chat(self, article_url: str, message: str, session_id: Optional[str] = None) -> Dict[str, Any]:
        return await self._request(
            "POST",
            "/api/chat",
            json={"article_url": article_url, "message": message, "session_id": session_id},
        )
