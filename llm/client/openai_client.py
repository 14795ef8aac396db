"""OpenAI chat completion wrapper.

- retries transient failures, enforces a per-request cost cap
- provider injection removes the network/openai dependency in tests
"""

from __future__ import annotations

import math
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from llm.settings import ChatSettings, get_chat_settings


class LLMError(Exception):
    """Base LLM call error."""


class TransientLLMError(LLMError):
    """Temporary failure (retryable)."""


class PermanentLLMError(LLMError):
    """Permanent failure (not retryable)."""


ProviderFn = Callable[[Dict[str, Any]], Dict[str, Any]]


_PRICE_PER_1K_TOKENS_USD: Dict[str, Dict[str, float]] = {
    "gpt-4o-mini": {"prompt": 0.00015, "completion": 0.0006},
    "gpt-4o": {"prompt": 0.0025, "completion": 0.0100},
}


def _estimate_cost_usd(model: str, prompt_tokens: int, completion_tokens: int) -> float:
    price = _PRICE_PER_1K_TOKENS_USD.get(model, _PRICE_PER_1K_TOKENS_USD["gpt-4o-mini"])
    return (
        (prompt_tokens / 1000.0) * price["prompt"]
        + (completion_tokens / 1000.0) * price["completion"]
    )


def _estimate_tokens_from_messages(messages: List[dict]) -> int:
    """Conservative length-based token estimate."""
    total_chars = sum(len(str(m.get("content", ""))) for m in messages if isinstance(m, dict))
    return max(1, math.ceil(total_chars / 4))


@dataclass(frozen=True)
class ChatReply:
    content: str
    model: str
    prompt_tokens: int
    completion_tokens: int
    cost_usd: float


@dataclass(frozen=True)
class OpenAIClient:
    settings: ChatSettings
    provider: Optional[ProviderFn] = None

    @classmethod
    def from_env(cls, provider: Optional[ProviderFn] = None) -> "OpenAIClient":
        return cls(get_chat_settings(), provider=provider)

    def _get_provider(self) -> ProviderFn:
        if self.provider is not None:
            return self.provider
        from openai import OpenAI

        client = OpenAI(
            api_key=self.settings.openai_api_key,
            timeout=float(self.settings.chat_request_timeout_seconds),
        )

        def _call(payload: Dict[str, Any]) -> Dict[str, Any]:  # pragma: no cover - network
            try:
                resp = client.chat.completions.create(**payload)
            except Exception as exc:
                raise TransientLLMError(f"OpenAI call failed: {exc}") from exc
            return {
                "choices": [{"message": {"content": resp.choices[0].message.content}}],
                "usage": {
                    "prompt_tokens": getattr(resp.usage, "prompt_tokens", 0),
                    "completion_tokens": getattr(resp.usage, "completion_tokens", 0),
                },
                "model": resp.model,
            }

        return _call

    def complete_chat(self, messages: List[dict]) -> ChatReply:
        model_name = self.settings.chat_model
        max_tokens = int(self.settings.chat_max_tokens)
        cost_cap = float(self.settings.chat_cost_limit_usd)

        estimated = _estimate_cost_usd(model_name, _estimate_tokens_from_messages(messages), max_tokens)
        if estimated > cost_cap:
            raise PermanentLLMError("Estimated cost exceeds the per-request limit")

        payload = {
            "model": model_name,
            "messages": messages,
            "temperature": float(self.settings.chat_temperature),
            "max_tokens": max_tokens,
        }
        provider = self._get_provider()

        attempts = 0
        last_exc: Optional[Exception] = None
        start = time.monotonic()
        while attempts < int(self.settings.chat_retry_max_attempts):
            attempts += 1
            try:
                resp = provider(payload)
            except TransientLLMError as exc:
                last_exc = exc
                if time.monotonic() - start > float(self.settings.chat_request_timeout_seconds):
                    break
                continue
            model = resp.get("model") or model_name
            usage = resp.get("usage") or {}
            prompt_tokens = int(usage.get("prompt_tokens", 0))
            completion_tokens = int(usage.get("completion_tokens", 0))
            content = (resp.get("choices") or [{}])[0].get("message", {}).get("content") or ""
            return ChatReply(
                content=content.strip(),
                model=model,
                prompt_tokens=prompt_tokens,
                completion_tokens=completion_tokens,
                cost_usd=_estimate_cost_usd(model, prompt_tokens, completion_tokens),
            )

        assert last_exc is not None
        raise TransientLLMError(f"LLM retry limit exceeded: {last_exc}") from last_exc
