"""
Explicit cache component.

WHAT: A small key/value cache that services call directly: ``get``, ``set``,
``delete`` and ``delete_prefix``. Values are JSON-compatible dicts/lists
(already-serialized response schemas), never ORM objects.

HOW: Three backends behind one abstract class, picked by ``CACHE_TYPE``:
- ``redis``: shared Redis instance via ``redis.asyncio``
- ``simple``: per-process dict with TTL
- ``none``: every read misses, every write is a no-op

Reads fail open: a backend error is logged and treated as a miss.
Invalidations raise ``CacheError`` so the request transaction rolls back
instead of committing a write whose stale cache entry survived. Write paths
go through ``evict``, which also records the keys on the session so
``get_db`` can drop them again after the commit.
"""

import json
import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, Optional, Tuple
from uuid import UUID

import redis.asyncio as aioredis

from meeting_scheduler.core.config import settings
from meeting_scheduler.core.exceptions import CacheError


logger = logging.getLogger(__name__)


# ============================================================================
# Key builders
# ============================================================================


def calendar_key(calendar_id: UUID) -> str:
    return f"calendar:{calendar_id}"


def user_calendars_key(user_id: str) -> str:
    return f"user_calendars:{user_id}"


def time_slot_key(slot_id: UUID) -> str:
    return f"time_slot:{slot_id}"


def available_slots_prefix(calendar_id: UUID) -> str:
    return f"available_slots:{calendar_id}:"


def available_slots_key(calendar_id: UUID, start: Any, end: Any) -> str:
    return f"{available_slots_prefix(calendar_id)}{start.isoformat()}:{end.isoformat()}"


def meeting_key(meeting_id: UUID) -> str:
    return f"meeting:{meeting_id}"


# ============================================================================
# Backends
# ============================================================================


class CacheBackend(ABC):
    """
    Abstract base class for cache backends.
    """

    @abstractmethod
    async def get(self, key: str) -> Optional[Any]:
        """
        Return the cached value or None on a miss.
        """

    @abstractmethod
    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        """
        Store a JSON-compatible value.

        Args:
            key: Cache key
            value: JSON-compatible value
            ttl: Seconds to live (settings.CACHE_TTL_SECONDS when omitted)
        """

    @abstractmethod
    async def delete(self, *keys: str) -> None:
        """Remove the given keys. Missing keys are ignored."""

    @abstractmethod
    async def delete_prefix(self, prefix: str) -> None:
        """Remove every key starting with ``prefix``."""

    @abstractmethod
    async def clear(self) -> None:
        """Remove everything this backend owns."""


class NullCache(CacheBackend):
    """Cache that never stores anything."""

    async def get(self, key: str) -> Optional[Any]:
        return None

    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        return None

    async def delete(self, *keys: str) -> None:
        return None

    async def delete_prefix(self, prefix: str) -> None:
        return None

    async def clear(self) -> None:
        return None


class InMemoryCache(CacheBackend):
    """
    Per-process cache with TTL expiry.

    Values are stored as JSON text so callers get a fresh copy on every read,
    matching what the Redis backend returns.
    """

    def __init__(self, default_ttl: Optional[int] = None):
        self._default_ttl = default_ttl if default_ttl is not None else settings.CACHE_TTL_SECONDS
        self._entries: Dict[str, Tuple[float, str]] = {}

    async def get(self, key: str) -> Optional[Any]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        expires_at, payload = entry
        if expires_at <= time.monotonic():
            self._entries.pop(key, None)
            return None
        return json.loads(payload)

    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        ttl = self._default_ttl if ttl is None else ttl
        self._entries[key] = (time.monotonic() + ttl, json.dumps(value))

    async def delete(self, *keys: str) -> None:
        for key in keys:
            self._entries.pop(key, None)

    async def delete_prefix(self, prefix: str) -> None:
        for key in [k for k in self._entries if k.startswith(prefix)]:
            self._entries.pop(key, None)

    async def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


class RedisCache(CacheBackend):
    """
    Redis-backed cache.

    All keys are namespaced with ``key_prefix`` so ``clear`` and
    ``delete_prefix`` never touch data owned by other applications.
    """

    def __init__(
        self,
        redis_client: Optional[aioredis.Redis] = None,
        url: Optional[str] = None,
        default_ttl: Optional[int] = None,
        key_prefix: str = "meeting_scheduler",
    ):
        """
        Initialize the Redis cache.

        Args:
            redis_client: Existing async client (tests inject a mock here)
            url: Redis URL used to create a client lazily
            default_ttl: Default expiry in seconds
            key_prefix: Namespace for every key
        """
        self._redis = redis_client
        self._url = url or settings.REDIS_URL
        self._default_ttl = default_ttl if default_ttl is not None else settings.CACHE_TTL_SECONDS
        self._key_prefix = key_prefix

    async def _client(self) -> aioredis.Redis:
        if self._redis is None:
            self._redis = await aioredis.from_url(
                self._url,
                encoding="utf-8",
                decode_responses=True,
            )
        return self._redis

    def _key(self, key: str) -> str:
        return f"{self._key_prefix}:{key}"

    async def get(self, key: str) -> Optional[Any]:
        try:
            client = await self._client()
            payload = await client.get(self._key(key))
        except Exception as e:
            logger.error(f"Cache read failed for {key} (treating as miss): {e}")
            return None
        if payload is None:
            return None
        return json.loads(payload)

    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        ttl = self._default_ttl if ttl is None else ttl
        try:
            client = await self._client()
            await client.set(self._key(key), json.dumps(value), ex=ttl)
        except Exception as e:
            logger.error(f"Cache write failed for {key}: {e}")

    async def delete(self, *keys: str) -> None:
        if not keys:
            return
        try:
            client = await self._client()
            await client.delete(*[self._key(k) for k in keys])
        except Exception as e:
            raise CacheError(message="Cache invalidation failed", keys=list(keys)) from e

    async def delete_prefix(self, prefix: str) -> None:
        try:
            client = await self._client()
            batch = []
            async for key in client.scan_iter(match=f"{self._key(prefix)}*", count=500):
                batch.append(key)
                if len(batch) >= 500:
                    await client.delete(*batch)
                    batch = []
            if batch:
                await client.delete(*batch)
        except Exception as e:
            raise CacheError(message="Cache invalidation failed", prefix=prefix) from e

    async def clear(self) -> None:
        await self.delete_prefix("")


# ============================================================================
# Global Cache Instance
# ============================================================================


_cache: Optional[CacheBackend] = None


def build_cache(cache_type: Optional[str] = None) -> CacheBackend:
    """
    Create a backend for the given cache type.

    Args:
        cache_type: "redis", "simple" or "none" (settings.CACHE_TYPE when omitted)

    Returns:
        CacheBackend instance

    Raises:
        ValueError: If the cache type is unknown
    """
    cache_type = (cache_type or settings.CACHE_TYPE).lower()
    if cache_type == "redis":
        return RedisCache()
    if cache_type == "simple":
        return InMemoryCache()
    if cache_type == "none":
        return NullCache()
    raise ValueError(f"Unknown CACHE_TYPE: {cache_type}")


def get_cache() -> CacheBackend:
    """
    Get or create the global cache instance.

    Returns:
        CacheBackend instance
    """
    global _cache
    if _cache is None:
        _cache = build_cache()
        logger.info(f"Cache backend: {type(_cache).__name__}")
    return _cache


def set_cache(cache: Optional[CacheBackend]) -> None:
    """Replace the global cache (None resets it to lazy creation)."""
    global _cache
    _cache = cache


# ============================================================================
# Write-path invalidation
# ============================================================================

PENDING_KEYS = "cache_pending_keys"
PENDING_PREFIXES = "cache_pending_prefixes"


async def evict(
    cache: CacheBackend,
    session: Any,
    *keys: str,
    prefixes: Iterable[str] = (),
) -> None:
    """
    Drop cache entries touched by a write, now and again after commit.

    The immediate delete runs inside the request transaction, so a failure
    raises CacheError and rolls it back. The keys are also remembered on
    ``session.info`` and deleted once more by ``evict_committed``: a reader
    that cached the old row between this call and the commit would
    otherwise keep serving it for the whole TTL.

    Args:
        cache: Cache backend
        session: Session carrying the write
        *keys: Exact keys to drop
        prefixes: Key prefixes to drop
    """
    prefixes = list(prefixes)
    await cache.delete(*keys)
    for prefix in prefixes:
        await cache.delete_prefix(prefix)

    session.info.setdefault(PENDING_KEYS, set()).update(keys)
    session.info.setdefault(PENDING_PREFIXES, set()).update(prefixes)


async def evict_committed(session: Any, cache: Optional[CacheBackend] = None) -> None:
    """
    Replay the evictions recorded on ``session`` after it committed.

    The data is already durable here, so a cache failure is logged rather
    than raised; entries still expire after CACHE_TTL_SECONDS.
    """
    keys = session.info.pop(PENDING_KEYS, set())
    prefixes = session.info.pop(PENDING_PREFIXES, set())
    if not keys and not prefixes:
        return

    cache = cache or get_cache()
    try:
        await cache.delete(*sorted(keys))
        for prefix in sorted(prefixes):
            await cache.delete_prefix(prefix)
    except CacheError as e:
        logger.error(f"Post-commit cache eviction failed: {e.message} {e.context}")


def discard_pending(session: Any) -> None:
    """Forget recorded evictions after a rollback."""
    session.info.pop(PENDING_KEYS, None)
    session.info.pop(PENDING_PREFIXES, None)
