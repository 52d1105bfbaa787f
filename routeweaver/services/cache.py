"""TTL caches for short-lived memoization (popular destinations)."""
import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Protocol

import redis

from routeweaver.config import Settings

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


class Cache(Protocol):
    def get(self, key: str) -> Optional[Any]:
        ...

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        ...

    def delete(self, key: str) -> bool:
        ...

    def ping(self) -> bool:
        ...


@dataclass(frozen=True)
class _Entry:
    value: Any
    expires_at: Optional[float]


class MemoryCache:
    """
    Process-local cache with per-entry expiry.

    Entries are replaced on ``set``, never mutated, and values are frozen into
    tuples when they are lists so readers cannot change what is stored.
    Every ``set`` first drops entries that have expired.
    """

    def __init__(self, default_ttl: Optional[int] = None, clock: Clock = time.monotonic) -> None:
        self.default_ttl = default_ttl
        self._clock = clock
        self._entries: Dict[str, _Entry] = {}

    def get(self, key: str) -> Optional[Any]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.expires_at is not None and self._clock() >= entry.expires_at:
            del self._entries[key]
            return None
        return entry.value

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        self.purge_expired()
        ttl = ttl if ttl is not None else self.default_ttl
        expires_at = self._clock() + ttl if ttl else None
        if isinstance(value, list):
            value = tuple(value)
        self._entries[key] = _Entry(value=value, expires_at=expires_at)
        return True

    def delete(self, key: str) -> bool:
        self._entries.pop(key, None)
        return True

    def purge_expired(self) -> int:
        """Drop expired entries and return how many were removed."""
        now = self._clock()
        expired = [
            key for key, entry in self._entries.items()
            if entry.expires_at is not None and now >= entry.expires_at
        ]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def ping(self) -> bool:
        return True

    def __len__(self) -> int:
        return len(self._entries)


class RedisCache:
    """Redis-backed cache storing JSON values."""

    def __init__(self, client: redis.Redis, default_ttl: Optional[int] = None) -> None:
        self.client = client
        self.default_ttl = default_ttl

    @classmethod
    def from_settings(cls, settings: Settings) -> "RedisCache":
        client = redis.Redis(
            host=settings.redis_host,
            port=settings.redis_port,
            db=settings.redis_db,
            password=settings.redis_password,
            decode_responses=True,
        )
        return cls(client, default_ttl=settings.cache_ttl_seconds)

    def get(self, key: str) -> Optional[Any]:
        try:
            value = self.client.get(key)
            if value:
                return json.loads(value)
            return None
        except redis.RedisError as e:
            logger.warning(f"Redis GET error: {e}")
            return None

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        ttl = ttl if ttl is not None else self.default_ttl
        try:
            serialized = json.dumps(value)
            if ttl:
                self.client.setex(key, ttl, serialized)
            else:
                self.client.set(key, serialized)
            return True
        except (redis.RedisError, TypeError) as e:
            logger.warning(f"Redis SET error: {e}")
            return False

    def delete(self, key: str) -> bool:
        try:
            self.client.delete(key)
            return True
        except redis.RedisError as e:
            logger.warning(f"Redis DELETE error: {e}")
            return False

    def ping(self) -> bool:
        """Check if Redis is connected."""
        try:
            return bool(self.client.ping())
        except redis.RedisError:
            return False


def build_cache(settings: Settings) -> Cache:
    """Cache backend selected by ``settings.cache_backend``."""
    if settings.cache_backend == "redis":
        return RedisCache.from_settings(settings)
    return MemoryCache(default_ttl=settings.cache_ttl_seconds)
