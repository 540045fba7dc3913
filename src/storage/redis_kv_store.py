# src/storage/redis_kv_store.py — v1
"""Redis-based key-value store (KV_BACKEND=redis).

Requires 'redis' package: pip install imgcache[redis].
Lets several processes on different hosts share one index blob.
"""

from __future__ import annotations

import logging

from imgcache.storage.base_kv_store import BaseKeyValueStore

logger = logging.getLogger(__name__)

_KEY_PREFIX = "imgcache:kv:"


class RedisKeyValueStore(BaseKeyValueStore):
    """Redis-backed key-value store using the asyncio client."""

    def __init__(self, redis_url: str) -> None:
        try:
            from redis import asyncio as aioredis
        except ImportError as e:
            raise ImportError(
                "redis package required: pip install redis"
            ) from e

        self._client = aioredis.Redis.from_url(redis_url, decode_responses=True)

    async def get(self, key: str) -> str | None:
        """Retrieve the value stored under key."""
        return await self._client.get(f"{_KEY_PREFIX}{key}")

    async def set(self, key: str, value: str) -> None:
        """Store value under key."""
        await self._client.set(f"{_KEY_PREFIX}{key}", value)

    async def delete(self, key: str) -> None:
        """Remove the value stored under key."""
        await self._client.delete(f"{_KEY_PREFIX}{key}")

    async def close(self) -> None:
        """Close the Redis connection."""
        await self._client.aclose()
