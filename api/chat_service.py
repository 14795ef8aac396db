"""Article chat: answers questions about one cached article."""

from __future__ import annotations

import logging
import uuid
from typing import List, Optional, Protocol, Tuple

from sqlalchemy import select
from sqlalchemy.orm import Session

from gateway.db.models import NewsRecord
from llm.client.openai_client import OpenAIClient, PermanentLLMError, TransientLLMError


class ContextCache(Protocol):
    def get_context(self, session_id: str) -> Optional[List[dict]]: ...
    def set_context(self, session_id: str, context: List[dict]) -> None: ...
    def clear_context(self, session_id: str) -> None: ...


class ChatServiceError(Exception):
    """Chat failure carrying an error code for the API layer."""

    def __init__(self, code: str, detail: str, trace_id: str):
        super().__init__(detail)
        self.code = code
        self.detail = detail
        self.trace_id = trace_id


class ChatService:
    """Builds an article-grounded context and asks the LLM for a reply."""

    HISTORY_LIMIT = 20
    CONTENT_MAX_CHARS = 4000

    def __init__(self, openai_client: OpenAIClient, cache: ContextCache):
        self.openai_client = openai_client
        self.cache = cache
        self.logger = logging.getLogger(__name__)

    def handle_message(
        self,
        db_session: Session,
        article_url: str,
        user_message: str,
        session_id: Optional[str] = None,
    ) -> Tuple[str, str]:
        """Return `(session_id, reply)`; a new session id is minted when none is given."""
        trace_id = uuid.uuid4().hex
        message = user_message.strip()
        if not message:
            raise ChatServiceError("invalid_input", "Please enter a message.", trace_id)

        sid = session_id or uuid.uuid4().hex
        context = self._build_context(db_session, sid, article_url, trace_id)
        context.append({"role": "user", "content": message})

        try:
            reply = self.openai_client.complete_chat(context)
        except PermanentLLMError as exc:
            self.logger.warning("chat.cost_limit", extra={"trace_id": trace_id, "error": str(exc)})
            raise ChatServiceError(
                "cost_limit", "The question is too long to answer. Please shorten it and try again.", trace_id
            ) from exc
        except TransientLLMError as exc:
            self.logger.warning("chat.transient_error", extra={"trace_id": trace_id, "error": str(exc)})
            raise ChatServiceError(
                "llm_unavailable", "The assistant is temporarily unavailable. Please try again later.", trace_id
            ) from exc

        context.append({"role": "assistant", "content": reply.content})
        self._set_cached_context(sid, context)
        self.logger.info(
            "chat.replied",
            extra={"trace_id": trace_id, "session_id": sid, "model": reply.model, "cost_usd": reply.cost_usd},
        )
        return sid, reply.content

    def _build_context(self, db_session: Session, session_id: str, article_url: str, trace_id: str) -> List[dict]:
        cached = self._get_cached_context(session_id)
        if cached:
            system, history = cached[0], cached[1:]
            return [system, *history[-self.HISTORY_LIMIT :]]

        article = db_session.scalars(select(NewsRecord).where(NewsRecord.url == article_url)).first()
        if article is None:
            raise ChatServiceError("article_not_found", "Article not found.", trace_id)

        return [
            {
                "role": "system",
                "content": (
                    "You help readers understand a news article. Answer concisely and only "
                    "from the article below; say so when the article does not cover the question.\n"
                    f"Title: {article.title}\nSource: {article.source_name}\n"
                    f"Category: {article.category}\nDescription: {article.description}\n"
                    f"Content: {article.content[: self.CONTENT_MAX_CHARS]}"
                ),
            }
        ]

    def _get_cached_context(self, session_id: str) -> Optional[List[dict]]:
        try:
            return self.cache.get_context(session_id)
        except Exception:
            return None

    def _set_cached_context(self, session_id: str, context: List[dict]) -> None:
        try:
            self.cache.set_context(session_id, context)
        except Exception:
            return None
