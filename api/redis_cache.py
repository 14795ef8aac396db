"""Redis-based cache for article chat contexts."""

from __future__ import annotations

import json
from typing import List, Optional

import redis
from redis.exceptions import RedisError


class RedisSessionCache:
    """Redis cache for chat session contexts."""

    def __init__(self, redis_url: str = "redis://localhost:6379/1", ttl_seconds: int = 3600):
        """Initialize Redis client.

        Args:
            redis_url: Redis connection URL
            ttl_seconds: lifetime of a cached conversation
        """
        self.client = redis.Redis.from_url(redis_url, decode_responses=True)
        self.ttl = ttl_seconds

    @staticmethod
    def _key(session_id: str) -> str:
        return f"chat:article:{session_id}"

    def get_context(self, session_id: str) -> Optional[List[dict]]:
        """Return the cached message list for a session, or None."""
        try:
            data = self.client.get(self._key(session_id))
        except RedisError:
            return None
        return json.loads(data) if data else None

    def set_context(self, session_id: str, context: List[dict]) -> None:
        try:
            self.client.setex(self._key(session_id), self.ttl, json.dumps(context))
        except RedisError:
            return

    def clear_context(self, session_id: str) -> None:
        try:
            self.client.delete(self._key(session_id))
        except RedisError:
            return
