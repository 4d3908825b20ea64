"""
storage/redis_store.py

EventStore backed by Redis via redis-py's asyncio client.

Design decisions:
  - decode_responses=True: members are JSON text, so callers always get str.
  - Infinite score bounds are sent as Redis' "-inf" / "+inf" tokens.
  - No retries here; a failed command surfaces as redis.RedisError and the
    security logger wraps it into its own failure vocabulary.
"""

from __future__ import annotations

import logging
import math

import redis.asyncio as aioredis

from .store import EventStore

logger = logging.getLogger(__name__)


def _score_arg(score: float) -> float | str:
    if math.isinf(score):
        return "+inf" if score > 0 else "-inf"
    return score


class RedisEventStore(EventStore):
    """
    Thin wrapper around a redis.asyncio.Redis client.

    Usage:
        store = RedisEventStore.from_url("redis://localhost:6379/0")
        await store.sorted_set_insert("security_logs", 1700000000000, "{...}")
        await store.close()
    """

    def __init__(self, client: aioredis.Redis) -> None:
        self._client = client

    @classmethod
    def from_url(cls, url: str) -> "RedisEventStore":
        client = aioredis.Redis.from_url(url, decode_responses=True)
        logger.info("Redis event store configured — url=%r", _redact(url))
        return cls(client)

    async def sorted_set_insert(self, key: str, score: float, member: str) -> None:
        await self._client.zadd(key, {member: score})

    async def sorted_set_range_by_score(
        self, key: str, min_score: float, max_score: float
    ) -> list[str]:
        return await self._client.zrangebyscore(
            key, _score_arg(min_score), _score_arg(max_score)
        )

    async def sorted_set_delete_range_by_score(
        self, key: str, min_score: float, max_score: float
    ) -> int:
        return await self._client.zremrangebyscore(
            key, _score_arg(min_score), _score_arg(max_score)
        )

    async def list_push_front(self, key: str, member: str) -> None:
        await self._client.lpush(key, member)

    async def list_trim(self, key: str, start: int, end: int) -> None:
        await self._client.ltrim(key, start, end)

    async def list_range(self, key: str, start: int, end: int) -> list[str]:
        return await self._client.lrange(key, start, end)

    async def close(self) -> None:
        try:
            await self._client.aclose()
            logger.info("Redis event store closed")
        except Exception as exc:
            logger.warning("Error closing Redis client: %s", exc)


def _redact(url: str) -> str:
    """Hide the password part of a redis:// URL for log output."""
    if "@" not in url:
        return url
    scheme, _, rest = url.partition("://")
    creds, _, host = rest.rpartition("@")
    user = creds.split(":", 1)[0]
    return f"{scheme}://{user}:***@{host}"
