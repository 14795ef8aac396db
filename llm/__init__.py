"""LLM module - OpenAI client and settings."""

from llm.client.openai_client import (
    ChatReply,
    LLMError,
    OpenAIClient,
    PermanentLLMError,
    ProviderFn,
    TransientLLMError,
)
from llm.settings import ChatSettings, get_chat_settings, reset_chat_settings_cache

__all__ = [
    "ChatReply",
    "ChatSettings",
    "LLMError",
    "OpenAIClient",
    "PermanentLLMError",
    "ProviderFn",
    "TransientLLMError",
    "get_chat_settings",
    "reset_chat_settings_cache",
]
