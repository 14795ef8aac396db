from __future__ import annotations

from typing import Any, Dict, List, Optional

import pytest

from api.chat_service import ChatService, ChatServiceError
from gateway.db.session import init_schema, session_scope
from gateway.repositories.articles import save_articles
from llm.client.openai_client import OpenAIClient, TransientLLMError
from llm.settings import ChatSettings
from tests.conftest import make_article


class DummyCache:
    def __init__(self) -> None:
        self.storage: Dict[str, List[dict]] = {}

    def get_context(self, session_id: str) -> Optional[List[dict]]:
        return self.storage.get(session_id)

    def set_context(self, session_id: str, context: List[dict]) -> None:
        self.storage[session_id] = context

    def clear_context(self, session_id: str) -> None:
        self.storage.pop(session_id, None)


def _settings(**overrides: Any) -> ChatSettings:
    values: Dict[str, Any] = {"openai_api_key": "test-key", "chat_retry_max_attempts": 2}
    values.update(overrides)
    return ChatSettings(**values)


def _echo_provider(payload: Dict[str, Any]) -> Dict[str, Any]:
    system = payload["messages"][0]["content"]
    question = payload["messages"][-1]["content"]
    return {
        "choices": [{"message": {"content": f" {question} | {'Title: Title https://ex.com/a' in system} "}}],
        "usage": {"prompt_tokens": 10, "completion_tokens": 5},
        "model": "gpt-4o-mini",
    }


@pytest.fixture()
def seeded(store_env):
    init_schema()
    with session_scope() as session:
        save_articles(session, [make_article("https://ex.com/a")])
    return store_env


def test_reply_grounded_in_article_and_cached(seeded):
    cache = DummyCache()
    service = ChatService(OpenAIClient(_settings(), provider=_echo_provider), cache)

    with session_scope() as session:
        sid, reply = service.handle_message(session, "https://ex.com/a", "What is it about?")
        sid2, _ = service.handle_message(session, "https://ex.com/a", "More?", session_id=sid)

    assert reply == "What is it about? | True"
    assert sid2 == sid
    roles = [m["role"] for m in cache.storage[sid]]
    assert roles == ["system", "user", "assistant", "user", "assistant"]


def test_unknown_article(seeded):
    service = ChatService(OpenAIClient(_settings(), provider=_echo_provider), DummyCache())
    with session_scope() as session:
        with pytest.raises(ChatServiceError) as exc_info:
            service.handle_message(session, "https://ex.com/missing", "hi")
    assert exc_info.value.code == "article_not_found"


def test_blank_message(seeded):
    service = ChatService(OpenAIClient(_settings(), provider=_echo_provider), DummyCache())
    with session_scope() as session:
        with pytest.raises(ChatServiceError) as exc_info:
            service.handle_message(session, "https://ex.com/a", "   ")
    assert exc_info.value.code == "invalid_input"


def test_cost_limit_and_outage(seeded):
    capped = ChatService(OpenAIClient(_settings(chat_cost_limit_usd=0.0001), provider=_echo_provider), DummyCache())

    def _down(_payload: Dict[str, Any]) -> Dict[str, Any]:
        raise TransientLLMError("503")

    offline = ChatService(OpenAIClient(_settings(), provider=_down), DummyCache())

    with session_scope() as session:
        with pytest.raises(ChatServiceError) as capped_info:
            capped.handle_message(session, "https://ex.com/a", "hi")
        with pytest.raises(ChatServiceError) as offline_info:
            offline.handle_message(session, "https://ex.com/a", "hi")

    assert capped_info.value.code == "cost_limit"
    assert offline_info.value.code == "llm_unavailable"


def test_redis_cache_degrades_when_server_is_down():
    from api.redis_cache import RedisSessionCache

    cache = RedisSessionCache("redis://127.0.0.1:1/0", ttl_seconds=60)

    assert cache._key("abc") == "chat:article:abc"
    assert cache.get_context("abc") is None
    cache.set_context("abc", [{"role": "system", "content": "x"}])
    cache.clear_context("abc")
