from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Optional

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from gateway.services.gateway import ContentGateway
from gateway.settings import get_settings
from gateway.utils.logging import configure_logging
from llm.client.openai_client import OpenAIClient
from llm.settings import get_chat_settings

from .chat_service import ChatService
from .database import init_db
from .redis_cache import RedisSessionCache
from .routes import router

project_root = Path(__file__).parent.parent
env_path = project_root / ".env"

logger = logging.getLogger(__name__)


def _build_chat_service() -> Optional[ChatService]:
    try:
        settings = get_chat_settings()
    except RuntimeError:
        logger.warning("chat.disabled", extra={"reason": "OPENAI_API_KEY not configured"})
        return None
    cache = RedisSessionCache(settings.chat_redis_url, ttl_seconds=int(settings.chat_context_ttl_seconds))
    return ChatService(OpenAIClient(settings), cache)


def create_app(
    gateway: Optional[ContentGateway] = None,
    chat_service: Optional[ChatService] = None,
    content_fetcher: Optional[Callable[[str], str]] = None,
) -> FastAPI:
    """Application entry point; owns the gateway and chat service lifecycles."""
    if env_path.exists():
        load_dotenv(env_path)
    settings = get_settings()
    configure_logging(settings.structlog_level, json_enabled=settings.log_json)

    app = FastAPI(title="Newsfeed Hub API", version="0.1.0")
    init_db()

    app.state.gateway = gateway or ContentGateway.from_settings(settings)
    app.state.chat_service = chat_service or _build_chat_service()
    app.state.content_fetcher = content_fetcher

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:5173", "http://127.0.0.1:5173"],
        allow_methods=["*"],
        allow_headers=["*"],
        allow_credentials=True,
    )

    app.include_router(router)

    @app.get("/healthz", tags=["system"])
    async def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    return app
