"""Two-tier cache composition and the typed caches built on it."""

import logging
import re
from typing import Any

from hybrid_rag.exceptions import CacheError

from .base import Cache
from .local import LocalCache

logger = logging.getLogger(__name__)


class TieredCache(Cache):
    """Local tier in front of an optional remote tier.

    Reads try local first, then remote; a remote hit is copied into local.
    Writes go to both. A remote CacheError is logged and the operation
    continues local-only, so callers never see remote failures.
    """

    def __init__(self, local: LocalCache, remote: Cache | None = None):
        self.local = local
        self.remote = remote

    async def get(self, key: str) -> Any | None:
        value = await self.local.get(key)
        if value is not None or self.remote is None:
            return value

        try:
            value = await self.remote.get(key)
        except CacheError as e:
            logger.warning(f"Remote cache read failed, using local only: {e}")
            return None

        if value is not None:
            await self.local.set(key, value)
        return value

    async def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        await self.local.set(key, value, ttl)
        if self.remote is None:
            return
        try:
            await self.remote.set(key, value, ttl)
        except CacheError as e:
            logger.warning(f"Remote cache write failed, kept locally: {e}")

    async def delete(self, key: str) -> None:
        await self.local.delete(key)
        if self.remote is None:
            return
        try:
            await self.remote.delete(key)
        except CacheError as e:
            logger.warning(f"Remote cache delete failed: {e}")

    async def clear(self, prefix: str = "") -> int:
        removed = await self.local.clear(prefix)
        if self.remote is None:
            return removed
        try:
            removed += await self.remote.clear(prefix)
        except CacheError as e:
            logger.warning(f"Remote cache clear failed: {e}")
        return removed

    async def health(self) -> bool:
        if self.remote is None:
            return True
        return await self.remote.health()

    async def close(self) -> None:
        if self.remote is not None:
            await self.remote.close()


_WHITESPACE = re.compile(r"\s+")


def normalize_text(text: str) -> str:
    """Lower-case, trim and collapse whitespace."""
    return _WHITESPACE.sub(" ", text.strip().lower())


class EmbeddingCache:
    """Embeddings keyed by normalized text."""

    PREFIX = "embedding:"

    def __init__(self, cache: Cache, ttl: int = 604800):
        self.cache = cache
        self.ttl = ttl

    def key(self, text: str) -> str:
        return f"{self.PREFIX}{normalize_text(text)}"

    async def get(self, text: str) -> list[float] | None:
        return await self.cache.get(self.key(text))

    async def set(self, text: str, embedding: list[float]) -> None:
        await self.cache.set(self.key(text), list(embedding), self.ttl)


class QueryCache:
    """Serialized responses keyed by (user, normalized query)."""

    PREFIX = "query:"

    def __init__(self, cache: Cache, ttl: int = 3600):
        self.cache = cache
        self.ttl = ttl

    def key(self, user_id: str, query: str) -> str:
        return f"{self.PREFIX}{user_id}:{normalize_text(query)}"

    async def get(self, user_id: str, query: str) -> dict[str, Any] | None:
        return await self.cache.get(self.key(user_id, query))

    async def set(self, user_id: str, query: str, response: dict[str, Any]) -> None:
        await self.cache.set(self.key(user_id, query), response, self.ttl)

    async def invalidate_user(self, user_id: str) -> int:
        """Drop every cached response for one user."""
        removed = await self.cache.clear(f"{self.PREFIX}{user_id}:")
        logger.info(f"Invalidated {removed} cached queries for user {user_id}")
        return removed
