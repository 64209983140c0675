"""
Tests for the cache backends.
"""

from types import SimpleNamespace

import pytest
from unittest.mock import AsyncMock, MagicMock

from meeting_scheduler.core import cache as cache_module
from meeting_scheduler.core.cache import (
    InMemoryCache,
    NullCache,
    RedisCache,
    build_cache,
    get_cache,
    set_cache,
    available_slots_key,
    available_slots_prefix,
    evict,
    evict_committed,
    discard_pending,
)
from meeting_scheduler.core.exceptions import CacheError


class TestInMemoryCache:
    """Tests for the per-process backend."""

    @pytest.mark.asyncio
    async def test_set_and_get(self):
        cache = InMemoryCache()
        await cache.set("calendar:1", {"name": "Work"})
        assert await cache.get("calendar:1") == {"name": "Work"}

    @pytest.mark.asyncio
    async def test_get_returns_copy(self):
        cache = InMemoryCache()
        await cache.set("k", {"items": [1]})
        value = await cache.get("k")
        value["items"].append(2)
        assert await cache.get("k") == {"items": [1]}

    @pytest.mark.asyncio
    async def test_miss_returns_none(self):
        assert await InMemoryCache().get("missing") is None

    @pytest.mark.asyncio
    async def test_expired_entry_is_a_miss(self):
        cache = InMemoryCache()
        await cache.set("k", 1, ttl=0)
        assert await cache.get("k") is None
        assert len(cache) == 0

    @pytest.mark.asyncio
    async def test_delete_many(self):
        cache = InMemoryCache()
        await cache.set("a", 1)
        await cache.set("b", 2)
        await cache.set("c", 3)
        await cache.delete("a", "b", "not-there")
        assert await cache.get("a") is None
        assert await cache.get("b") is None
        assert await cache.get("c") == 3

    @pytest.mark.asyncio
    async def test_delete_prefix(self):
        cache = InMemoryCache()
        await cache.set("available_slots:cal-1:a:b", [])
        await cache.set("available_slots:cal-1:c:d", [])
        await cache.set("available_slots:cal-2:a:b", [])
        await cache.delete_prefix("available_slots:cal-1:")
        assert len(cache) == 1
        assert await cache.get("available_slots:cal-2:a:b") == []

    @pytest.mark.asyncio
    async def test_clear(self):
        cache = InMemoryCache()
        await cache.set("a", 1)
        await cache.clear()
        assert len(cache) == 0


class TestNullCache:
    @pytest.mark.asyncio
    async def test_never_stores(self):
        cache = NullCache()
        await cache.set("a", 1)
        assert await cache.get("a") is None
        await cache.delete("a")
        await cache.delete_prefix("a")


class TestRedisCache:
    """Tests for the Redis backend with a mocked client."""

    @pytest.mark.asyncio
    async def test_get_decodes_json(self):
        client = MagicMock()
        client.get = AsyncMock(return_value='{"id": "1"}')
        cache = RedisCache(redis_client=client, key_prefix="test")

        assert await cache.get("meeting:1") == {"id": "1"}
        client.get.assert_awaited_once_with("test:meeting:1")

    @pytest.mark.asyncio
    async def test_set_uses_ttl(self):
        client = MagicMock()
        client.set = AsyncMock()
        cache = RedisCache(redis_client=client, default_ttl=600, key_prefix="test")

        await cache.set("meeting:1", {"id": "1"})
        client.set.assert_awaited_once_with("test:meeting:1", '{"id": "1"}', ex=600)

    @pytest.mark.asyncio
    async def test_get_fails_open(self):
        client = MagicMock()
        client.get = AsyncMock(side_effect=ConnectionError("down"))
        cache = RedisCache(redis_client=client)

        assert await cache.get("meeting:1") is None

    @pytest.mark.asyncio
    async def test_set_fails_open(self):
        client = MagicMock()
        client.set = AsyncMock(side_effect=ConnectionError("down"))
        cache = RedisCache(redis_client=client)

        await cache.set("meeting:1", {"id": "1"})

    @pytest.mark.asyncio
    async def test_delete_failure_raises(self):
        client = MagicMock()
        client.delete = AsyncMock(side_effect=ConnectionError("down"))
        cache = RedisCache(redis_client=client)

        with pytest.raises(CacheError):
            await cache.delete("meeting:1")

    @pytest.mark.asyncio
    async def test_delete_prefix_scans(self):
        async def scan_iter(match, count):
            for key in ("test:available_slots:c1:a", "test:available_slots:c1:b"):
                yield key

        client = MagicMock()
        client.scan_iter = MagicMock(side_effect=scan_iter)
        client.delete = AsyncMock()
        cache = RedisCache(redis_client=client, key_prefix="test")

        await cache.delete_prefix("available_slots:c1:")

        client.scan_iter.assert_called_once_with(match="test:available_slots:c1:*", count=500)
        client.delete.assert_awaited_once_with(
            "test:available_slots:c1:a", "test:available_slots:c1:b"
        )


class TestCacheSelection:
    def test_build_cache_types(self):
        assert isinstance(build_cache("simple"), InMemoryCache)
        assert isinstance(build_cache("none"), NullCache)
        assert isinstance(build_cache("redis"), RedisCache)

    def test_build_cache_unknown(self):
        with pytest.raises(ValueError):
            build_cache("memcached")

    def test_get_cache_is_singleton(self):
        set_cache(None)
        first = get_cache()
        assert get_cache() is first
        assert cache_module._cache is first

    def test_available_slots_key_has_calendar_prefix(self):
        from datetime import datetime

        key = available_slots_key("cal-1", datetime(2030, 1, 1), datetime(2030, 1, 2))
        assert key.startswith(available_slots_prefix("cal-1"))
        assert key == "available_slots:cal-1:2030-01-01T00:00:00:2030-01-02T00:00:00"


class TestWritePathEviction:
    """Tests for evictions that are replayed after commit."""

    @pytest.mark.asyncio
    async def test_evict_deletes_now_and_records(self):
        cache = InMemoryCache()
        session = SimpleNamespace(info={})
        await cache.set("time_slot:1", {"status": "AVAILABLE"})
        await cache.set("available_slots:c1:a:b", [])

        await evict(cache, session, "time_slot:1", prefixes=["available_slots:c1:"])

        assert len(cache) == 0
        assert session.info[cache_module.PENDING_KEYS] == {"time_slot:1"}
        assert session.info[cache_module.PENDING_PREFIXES] == {"available_slots:c1:"}

    @pytest.mark.asyncio
    async def test_replay_drops_entries_cached_before_commit(self):
        cache = InMemoryCache()
        session = SimpleNamespace(info={})
        await evict(cache, session, "time_slot:1", prefixes=["available_slots:c1:"])

        # A concurrent reader refills the cache with the pre-commit row
        await cache.set("time_slot:1", {"status": "AVAILABLE"})
        await cache.set("available_slots:c1:a:b", [{"status": "AVAILABLE"}])

        await evict_committed(session, cache)

        assert await cache.get("time_slot:1") is None
        assert await cache.get("available_slots:c1:a:b") is None
        assert session.info == {}

    @pytest.mark.asyncio
    async def test_replay_without_pending_is_noop(self):
        cache = MagicMock()
        cache.delete = AsyncMock()

        await evict_committed(SimpleNamespace(info={}), cache)

        cache.delete.assert_not_called()

    @pytest.mark.asyncio
    async def test_replay_failure_is_logged(self, caplog):
        cache = MagicMock()
        cache.delete = AsyncMock(side_effect=CacheError(message="Cache invalidation failed"))
        session = SimpleNamespace(info={cache_module.PENDING_KEYS: {"meeting:1"}})

        await evict_committed(session, cache)

        assert "Post-commit cache eviction failed" in caplog.text

    @pytest.mark.asyncio
    async def test_evict_failure_propagates(self):
        cache = MagicMock()
        cache.delete = AsyncMock(side_effect=CacheError(message="Cache invalidation failed"))

        with pytest.raises(CacheError):
            await evict(cache, SimpleNamespace(info={}), "meeting:1")

    @pytest.mark.asyncio
    async def test_discard_after_rollback(self):
        cache = InMemoryCache()
        session = SimpleNamespace(info={})
        await evict(cache, session, "calendar:1")

        discard_pending(session)
        await cache.set("calendar:1", {"name": "Work"})
        await evict_committed(session, cache)

        assert await cache.get("calendar:1") == {"name": "Work"}
