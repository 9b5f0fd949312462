"""Redis-backed Notifier implementation."""

from __future__ import annotations

import json
import os
from typing import Dict, List, Optional

import redis.asyncio as aioredis

from .base import Notifier, ToastLevel, build_toast


def redis_url_from_env() -> str:
    """REDIS_URL wins; otherwise the URL is assembled from REDIS_HOST, REDIS_PORT and REDIS_PASSWORD."""
    url = os.getenv("REDIS_URL")
    if url:
        return url

    host = os.getenv("REDIS_HOST")
    if not host:
        raise ValueError(
            "Redis configuration is missing. Set REDIS_URL or REDIS_HOST "
            "(optionally with REDIS_PORT and REDIS_PASSWORD)."
        )
    port = os.getenv("REDIS_PORT") or "6379"
    password = os.getenv("REDIS_PASSWORD")
    credentials = f":{password}@" if password else ""
    return f"redis://{credentials}{host}:{port}"


class RedisNotifier(Notifier):
    """
    Notification channel shared by every worker process.

    Toasts are JSON entries in one Redis list. Each push refreshes the list's
    TTL, so undelivered toasts disappear once nobody has pushed for ttl_seconds.
    """

    def __init__(self, redis_url: Optional[str] = None, ttl_seconds: int = 30, key: str = "flowtrack:toasts"):
        self.redis_url = redis_url or redis_url_from_env()
        self.ttl_seconds = ttl_seconds
        self.key = key
        self.redis: Optional[aioredis.Redis] = None

    async def _get_redis(self) -> aioredis.Redis:
        """Connect on first use; a failed ping leaves the notifier unconnected."""
        if self.redis is not None:
            return self.redis

        connection = aioredis.from_url(self.redis_url, encoding="utf-8", decode_responses=True)
        try:
            await connection.ping()
        except Exception as exc:
            await connection.aclose()
            raise ConnectionError(f"Notification channel unavailable at {self.redis_url}: {exc}") from exc
        self.redis = connection
        return connection

    async def push(self, message: str, level: ToastLevel = ToastLevel.ERROR) -> Dict:
        toast = build_toast(message, level)
        redis = await self._get_redis()
        await redis.rpush(self.key, json.dumps(toast))
        await redis.expire(self.key, self.ttl_seconds)
        return toast

    async def drain(self) -> List[Dict]:
        redis = await self._get_redis()
        async with redis.pipeline(transaction=True) as pipe:
            pipe.lrange(self.key, 0, -1)
            pipe.delete(self.key)
            entries, _ = await pipe.execute()
        return [json.loads(entry) for entry in entries]

    async def close(self) -> None:
        """Close the shared Redis connection (idempotent)."""
        if self.redis:
            await self.redis.aclose()
            self.redis = None
