"""Tests for the local, Redis and tiered caches."""

import json

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from hybrid_rag.cache import (
    Cache,
    EmbeddingCache,
    LocalCache,
    QueryCache,
    RedisCache,
    TieredCache,
    create_cache,
    normalize_text,
)
from hybrid_rag.exceptions import CacheError


class FakeRedis:
    """Just enough of redis.asyncio.Redis for RedisCache."""

    def __init__(self, fail: bool = False):
        self.store: dict[str, str] = {}
        self.ttls: dict[str, int] = {}
        self.fail = fail
        self.closed = False

    def _check(self):
        if self.fail:
            raise RedisConnectionError("connection refused")

    async def get(self, key):
        self._check()
        return self.store.get(key)

    async def set(self, key, value):
        self._check()
        self.store[key] = value

    async def setex(self, key, ttl, value):
        self._check()
        self.store[key] = value
        self.ttls[key] = ttl

    async def delete(self, key):
        self._check()
        return 1 if self.store.pop(key, None) is not None else 0

    async def scan_iter(self, match="*"):
        self._check()
        prefix = match.rstrip("*")
        for key in list(self.store):
            if key.startswith(prefix):
                yield key

    async def ping(self):
        self._check()
        return True

    async def aclose(self):
        self.closed = True


class FailingCache(Cache):
    """Remote tier whose every call fails."""

    async def get(self, key):
        raise CacheError("remote down")

    async def set(self, key, value, ttl=None):
        raise CacheError("remote down")

    async def delete(self, key):
        raise CacheError("remote down")

    async def clear(self, prefix=""):
        raise CacheError("remote down")


# =============================================================================
# LocalCache
# =============================================================================


class TestLocalCache:

    @pytest.mark.asyncio
    async def test_round_trip(self):
        cache = LocalCache()
        await cache.set("a", {"x": 1})
        assert await cache.get("a") == {"x": 1}

    @pytest.mark.asyncio
    async def test_miss(self):
        assert await LocalCache().get("missing") is None

    @pytest.mark.asyncio
    async def test_ttl_expiry(self, fake_clock):
        cache = LocalCache(clock=fake_clock)
        await cache.set("a", 1, ttl=10)

        fake_clock.advance(9)
        assert await cache.get("a") == 1

        fake_clock.advance(1)
        assert await cache.get("a") is None
        assert len(cache) == 0

    @pytest.mark.asyncio
    async def test_default_ttl(self, fake_clock):
        cache = LocalCache(default_ttl=5, clock=fake_clock)
        await cache.set("a", 1)
        fake_clock.advance(5)
        assert await cache.get("a") is None

    @pytest.mark.asyncio
    async def test_no_ttl_never_expires(self, fake_clock):
        cache = LocalCache(clock=fake_clock)
        await cache.set("a", 1)
        fake_clock.advance(10**9)
        assert await cache.get("a") == 1

    @pytest.mark.asyncio
    async def test_eviction_drops_oldest_to_half(self, fake_clock):
        """Exceeding capacity keeps only the newest max_entries // 2."""
        cache = LocalCache(max_entries=4, clock=fake_clock)
        for i in range(5):
            await cache.set(f"k{i}", i)
            fake_clock.advance(1)

        assert len(cache) == 2
        assert await cache.get("k0") is None
        assert await cache.get("k2") is None
        assert await cache.get("k3") == 3
        assert await cache.get("k4") == 4

    @pytest.mark.asyncio
    async def test_reset_counts_as_new_insertion(self, fake_clock):
        cache = LocalCache(max_entries=2, clock=fake_clock)
        await cache.set("a", 1)
        fake_clock.advance(1)
        await cache.set("b", 2)
        fake_clock.advance(1)
        await cache.set("a", 10)
        fake_clock.advance(1)
        await cache.set("c", 3)

        assert len(cache) == 1
        assert await cache.get("c") == 3
        assert await cache.get("b") is None

    @pytest.mark.asyncio
    async def test_delete_and_clear_prefix(self):
        cache = LocalCache()
        await cache.set("query:u1:a", 1)
        await cache.set("query:u1:b", 2)
        await cache.set("query:u2:a", 3)
        await cache.delete("query:u1:a")

        assert await cache.clear("query:u1:") == 1
        assert await cache.get("query:u2:a") == 3

    def test_invalid_capacity(self):
        with pytest.raises(ValueError):
            LocalCache(max_entries=0)


# =============================================================================
# RedisCache
# =============================================================================


class TestRedisCache:

    @pytest.mark.asyncio
    async def test_set_with_ttl_uses_setex(self):
        client = FakeRedis()
        cache = RedisCache(client=client)

        await cache.set("a", {"x": [1, 2]}, ttl=30)

        assert client.ttls["a"] == 30
        assert json.loads(client.store["a"]) == {"x": [1, 2]}
        assert await cache.get("a") == {"x": [1, 2]}

    @pytest.mark.asyncio
    async def test_set_without_ttl(self):
        client = FakeRedis()
        await RedisCache(client=client).set("a", 1)
        assert "a" not in client.ttls

    @pytest.mark.asyncio
    async def test_clear_prefix(self):
        client = FakeRedis()
        cache = RedisCache(client=client)
        await cache.set("query:u1:a", 1)
        await cache.set("query:u2:a", 2)

        assert await cache.clear("query:u1:") == 1
        assert list(client.store) == ["query:u2:a"]

    @pytest.mark.asyncio
    async def test_errors_become_cache_error(self):
        cache = RedisCache(client=FakeRedis(fail=True))
        with pytest.raises(CacheError):
            await cache.get("a")
        with pytest.raises(CacheError):
            await cache.set("a", 1)

    @pytest.mark.asyncio
    async def test_health(self):
        assert await RedisCache(client=FakeRedis()).health() is True
        assert await RedisCache(client=FakeRedis(fail=True)).health() is False

    @pytest.mark.asyncio
    async def test_close(self):
        client = FakeRedis()
        cache = RedisCache(client=client)
        await cache.close()
        assert client.closed is True

    def test_requires_url_or_client(self):
        with pytest.raises(ValueError):
            RedisCache()


# =============================================================================
# TieredCache
# =============================================================================


class TestTieredCache:

    @pytest.mark.asyncio
    async def test_local_only(self):
        cache = create_cache(None)
        assert cache.remote is None
        await cache.set("a", 1)
        assert await cache.get("a") == 1
        assert await cache.health() is True

    @pytest.mark.asyncio
    async def test_remote_hit_backfills_local(self):
        remote = RedisCache(client=FakeRedis())
        await remote.set("a", {"v": 1})
        cache = TieredCache(LocalCache(), remote)

        assert await cache.get("a") == {"v": 1}
        assert await cache.local.get("a") == {"v": 1}

    @pytest.mark.asyncio
    async def test_writes_go_to_both_tiers(self):
        client = FakeRedis()
        cache = TieredCache(LocalCache(), RedisCache(client=client))

        await cache.set("a", 1, ttl=60)

        assert await cache.local.get("a") == 1
        assert client.store["a"] == "1"

    @pytest.mark.asyncio
    async def test_remote_failure_degrades_to_local(self):
        cache = TieredCache(LocalCache(), FailingCache())

        await cache.set("a", 1)
        assert await cache.get("a") == 1
        assert await cache.get("missing") is None
        await cache.delete("a")
        assert await cache.clear() == 0


# =============================================================================
# Typed caches
# =============================================================================


class TestTypedCaches:

    def test_normalize_text(self):
        assert normalize_text("  What   is\tReact? ") == "what is react?"

    @pytest.mark.asyncio
    async def test_embedding_cache_normalizes_key(self):
        cache = EmbeddingCache(LocalCache())
        await cache.set("Hello  World", [0.1, 0.2])

        assert cache.key("hello world") == "embedding:hello world"
        assert await cache.get(" hello world ") == [0.1, 0.2]

    @pytest.mark.asyncio
    async def test_query_cache_keyed_by_user(self):
        cache = QueryCache(LocalCache())
        await cache.set("u1", "What is React?", {"confidence": 0.9})

        assert await cache.get("u1", "what is  react?") == {"confidence": 0.9}
        assert await cache.get("u2", "What is React?") is None

    @pytest.mark.asyncio
    async def test_invalidate_user(self):
        cache = QueryCache(LocalCache())
        await cache.set("u1", "a", {})
        await cache.set("u1", "b", {})
        await cache.set("u2", "a", {})

        assert await cache.invalidate_user("u1") == 2
        assert await cache.get("u2", "a") == {}
