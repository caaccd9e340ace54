"""Redis cache tier, shared across service instances."""

import json
import logging
from typing import Any

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from hybrid_rag.exceptions import CacheError

from .base import Cache

logger = logging.getLogger(__name__)


class RedisCache(Cache):
    """Remote cache tier backed by Redis.

    Values are stored JSON-encoded; TTLs use SETEX. Every Redis failure
    surfaces as CacheError so the tiered cache can degrade to local-only.
    """

    def __init__(
        self,
        url: str | None = None,
        default_ttl: int | None = None,
        client: aioredis.Redis | None = None,
    ):
        if client is None and not url:
            raise ValueError("RedisCache needs a url or a client")
        self.url = url
        self.default_ttl = default_ttl
        self._client = client

    @property
    def client(self) -> aioredis.Redis:
        if self._client is None:
            self._client = aioredis.from_url(self.url, decode_responses=True)
        return self._client

    async def get(self, key: str) -> Any | None:
        try:
            raw = await self.client.get(key)
        except (RedisError, OSError) as e:
            raise CacheError(f"Redis GET {key} failed", e)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            raise CacheError(f"Redis value for {key} is not JSON", e)

    async def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        ttl = ttl if ttl is not None else self.default_ttl
        payload = json.dumps(value)
        try:
            if ttl:
                await self.client.setex(key, ttl, payload)
            else:
                await self.client.set(key, payload)
        except (RedisError, OSError) as e:
            raise CacheError(f"Redis SET {key} failed", e)

    async def delete(self, key: str) -> None:
        try:
            await self.client.delete(key)
        except (RedisError, OSError) as e:
            raise CacheError(f"Redis DEL {key} failed", e)

    async def clear(self, prefix: str = "") -> int:
        removed = 0
        try:
            async for key in self.client.scan_iter(match=f"{prefix}*"):
                removed += await self.client.delete(key)
        except (RedisError, OSError) as e:
            raise CacheError(f"Redis clear of {prefix!r} failed", e)
        return removed

    async def health(self) -> bool:
        try:
            return bool(await self.client.ping())
        except (RedisError, OSError) as e:
            logger.warning(f"Redis health check failed: {e}")
            return False

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
