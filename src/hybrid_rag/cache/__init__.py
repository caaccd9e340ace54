"""Two-tier caching: bounded local dictionary plus optional Redis."""

from hybrid_rag.cache.base import Cache
from hybrid_rag.cache.local import LocalCache
from hybrid_rag.cache.remote import RedisCache
from hybrid_rag.cache.tiered import (
    EmbeddingCache,
    QueryCache,
    TieredCache,
    normalize_text,
)


def create_cache(
    redis_url: str | None,
    max_entries: int = 1000,
    default_ttl: int | None = None,
) -> TieredCache:
    """Build a tiered cache; redis_url=None gives a local-only cache."""
    remote = RedisCache(redis_url, default_ttl=default_ttl) if redis_url else None
    return TieredCache(LocalCache(max_entries, default_ttl), remote)


__all__ = [
    "Cache",
    "EmbeddingCache",
    "LocalCache",
    "QueryCache",
    "RedisCache",
    "TieredCache",
    "create_cache",
    "normalize_text",
]
