"""Chat window state for one article."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from gateway.utils.logging import get_logger

from .client import BackendClient, BackendError

logger = get_logger(__name__)

GREETING = "Hi! I can help you understand this article better. What would you like to know?"
CHAT_UNAVAILABLE = "Sorry, the assistant is unavailable right now. Please try again later."


@dataclass(frozen=True)
class ChatLine:
    text: str
    is_user: bool


class ArticleChat:
    def __init__(self, article_url: str, client: BackendClient):
        self.article_url = article_url
        self.client = client
        self.session_id: Optional[str] = None
        self.messages: List[ChatLine] = [ChatLine(GREETING, is_user=False)]
        self.sending = False

    async def send(self, text: str) -> Optional[ChatLine]:
        """Post a user message and append the assistant reply; blank input is ignored."""
        message = text.strip()
        if not message:
            return None
        self.messages.append(ChatLine(message, is_user=True))
        self.sending = True
        try:
            data = await self.client.chat(self.article_url, message, self.session_id)
            self.session_id = data.get("session_id") or self.session_id
            reply = ChatLine(str(data.get("reply") or ""), is_user=False)
        except BackendError as exc:
            logger.warning("chat.send.failed", extra={"article_url": self.article_url, "error": exc.message})
            reply = ChatLine(CHAT_UNAVAILABLE, is_user=False)
        finally:
            self.sending = False
        self.messages.append(reply)
        return reply
