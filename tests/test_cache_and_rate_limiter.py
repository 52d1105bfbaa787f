import redis

from routeweaver.config import Settings
from routeweaver.services.cache import MemoryCache, RedisCache, build_cache
from routeweaver.services.rate_limiter import FixedWindowRateLimiter


def test_memory_cache_expires_entries(clock):
    cache = MemoryCache(default_ttl=60, clock=clock)
    cache.set("Kochi-50-100", {"name": "Munnar"})

    clock.advance(59)
    assert cache.get("Kochi-50-100") == {"name": "Munnar"}

    clock.advance(1)
    assert cache.get("Kochi-50-100") is None
    assert len(cache) == 0


def test_memory_cache_per_entry_ttl_and_no_expiry(clock):
    cache = MemoryCache(clock=clock)
    cache.set("forever", 1)
    cache.set("short", 2, ttl=5)

    clock.advance(10)

    assert cache.get("forever") == 1
    assert cache.get("short") is None


def test_memory_cache_freezes_lists(clock):
    cache = MemoryCache(clock=clock)
    original = [{"name": "Vagamon"}, {"name": "Kumarakom"}]
    cache.set("key", original)

    original.append({"name": "Thekkady"})

    stored = cache.get("key")
    assert isinstance(stored, tuple)
    assert len(stored) == 2


def test_memory_cache_set_replaces_and_delete(clock):
    cache = MemoryCache(clock=clock)
    cache.set("key", "first")
    cache.set("key", "second")

    assert cache.get("key") == "second"
    assert cache.delete("key")
    assert cache.get("key") is None
    assert cache.delete("missing")


def test_memory_cache_purge_expired(clock):
    cache = MemoryCache(default_ttl=10, clock=clock)
    cache.set("a", 1)
    cache.set("b", 2, ttl=100)

    clock.advance(20)

    assert cache.purge_expired() == 1
    assert len(cache) == 1


def test_memory_cache_set_drops_stale_entries(clock):
    cache = MemoryCache(default_ttl=10, clock=clock)
    cache.set("old-1", 1)
    cache.set("old-2", 2)
    cache.set("kept", 3, ttl=100)

    clock.advance(20)
    cache.set("new", 4)

    assert len(cache) == 2
    assert cache.get("kept") == 3


class UnreachableRedis:
    def ping(self):
        raise redis.ConnectionError("connection refused")


def test_cache_ping():
    assert MemoryCache().ping()
    assert not RedisCache(UnreachableRedis()).ping()


def test_build_cache_selects_backend():
    memory = build_cache(Settings(_env_file=None, cache_backend="memory"))
    redis_backed = build_cache(Settings(_env_file=None, cache_backend="redis"))

    assert isinstance(memory, MemoryCache)
    assert isinstance(redis_backed, RedisCache)


def test_rate_limiter_blocks_within_window(clock):
    limiter = FixedWindowRateLimiter(max_requests=2, window_seconds=1.0, clock=clock)

    assert limiter.allow()
    assert limiter.allow()
    assert not limiter.allow()

    clock.advance(0.5)
    assert not limiter.allow()


def test_rate_limiter_opens_new_window(clock):
    limiter = FixedWindowRateLimiter(max_requests=1, window_seconds=1.0, clock=clock)

    assert limiter.allow()
    clock.advance(1.0)
    assert limiter.allow()
    assert not limiter.allow()


def test_rate_limiter_keys_are_independent(clock):
    limiter = FixedWindowRateLimiter(max_requests=1, window_seconds=60, clock=clock)

    assert limiter.allow("10.0.0.1")
    assert limiter.allow("10.0.0.2")
    assert not limiter.allow("10.0.0.1")
