"""Tests for the Redis redirect cache."""

import json

import pytest

from shortlinks.database.cache import RedisCache


class FakeRedis:
    """In-memory stand-in for a redis.asyncio client."""

    def __init__(self):
        self.store = {}
        self.ttls = {}
        self.closed = False

    async def get(self, key):
        return self.store.get(key)

    async def setex(self, key, ttl, value):
        self.store[key] = value
        self.ttls[key] = ttl

    async def delete(self, key):
        return 1 if self.store.pop(key, None) is not None else 0

    async def ping(self):
        return True

    async def aclose(self):
        self.closed = True


class BrokenRedis(FakeRedis):

    async def get(self, key):
        raise ConnectionError("redis down")

    async def ping(self):
        raise ConnectionError("redis down")


def connected_cache(client, ttl_seconds=3600) -> RedisCache:
    cache = RedisCache(redis_url="redis://localhost:6379/0", ttl_seconds=ttl_seconds)
    cache.client = client
    return cache


@pytest.mark.asyncio
class TestRedisCache:
    """Test cache behaviour."""

    async def test_disabled_without_url(self):
        cache = RedisCache()
        await cache.connect()

        assert not cache.enabled
        assert await cache.get_link("abc") is None
        assert not await cache.set_link("abc", "id", "https://example.com/")
        assert not await cache.invalidate("abc")
        assert not await cache.ping()
        await cache.close()

    async def test_cache_key(self):
        assert RedisCache.get_cache_key("abc234") == "shortlinks:code:abc234"

    async def test_set_and_get(self):
        client = FakeRedis()
        cache = connected_cache(client, ttl_seconds=120)

        assert await cache.set_link("abc234", "link-1", "https://example.com/")

        assert await cache.get_link("abc234") == {"id": "link-1", "original_url": "https://example.com/"}
        assert client.ttls["shortlinks:code:abc234"] == 120
        assert json.loads(client.store["shortlinks:code:abc234"])["id"] == "link-1"

    async def test_invalidate(self):
        cache = connected_cache(FakeRedis())
        await cache.set_link("abc234", "link-1", "https://example.com/")

        assert await cache.invalidate("abc234")
        assert await cache.get_link("abc234") is None
        assert not await cache.invalidate("abc234")

    async def test_errors_degrade_to_miss(self):
        cache = connected_cache(BrokenRedis())

        assert await cache.get_link("abc234") is None
        assert not await cache.ping()

    async def test_close(self):
        client = FakeRedis()
        cache = connected_cache(client)

        await cache.close()
        assert client.closed
