from __future__ import annotations

from typing import Any, Dict

import pytest

from llm.client.openai_client import OpenAIClient, PermanentLLMError, TransientLLMError
from llm.settings import ChatSettings, get_chat_settings, reset_chat_settings_cache


def _settings(**overrides: Any) -> ChatSettings:
    values: Dict[str, Any] = {"openai_api_key": "test-key"}
    values.update(overrides)
    return ChatSettings(**values)


def test_complete_chat_retries_then_succeeds():
    calls = {"n": 0}

    def _flaky(payload: Dict[str, Any]) -> Dict[str, Any]:
        calls["n"] += 1
        if calls["n"] == 1:
            raise TransientLLMError("429")
        assert payload["max_tokens"] == 400
        return {
            "choices": [{"message": {"content": "  answer  "}}],
            "usage": {"prompt_tokens": 1000, "completion_tokens": 1000},
            "model": "gpt-4o-mini",
        }

    reply = OpenAIClient(_settings(), provider=_flaky).complete_chat([{"role": "user", "content": "hi"}])

    assert calls["n"] == 2
    assert reply.content == "answer"
    assert reply.cost_usd == pytest.approx(0.00075)


def test_retry_limit_exceeded():
    def _down(_payload: Dict[str, Any]) -> Dict[str, Any]:
        raise TransientLLMError("503")

    client = OpenAIClient(_settings(chat_retry_max_attempts=3), provider=_down)
    with pytest.raises(TransientLLMError, match="retry limit"):
        client.complete_chat([{"role": "user", "content": "hi"}])


def test_cost_cap_is_enforced_before_calling():
    def _never(_payload: Dict[str, Any]) -> Dict[str, Any]:
        raise AssertionError("provider must not be called")

    client = OpenAIClient(_settings(chat_cost_limit_usd=0.0001), provider=_never)
    with pytest.raises(PermanentLLMError):
        client.complete_chat([{"role": "user", "content": "hi"}])


def test_missing_api_key(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    reset_chat_settings_cache()
    try:
        with pytest.raises(RuntimeError, match="Chat settings validation failed"):
            get_chat_settings()
    finally:
        reset_chat_settings_cache()
