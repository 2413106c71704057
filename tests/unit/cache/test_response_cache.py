# tests/unit/cache/test_response_cache.py - v1
"""Tests for cache/response_cache.py: TTL semantics."""

from __future__ import annotations

from figmabridge.cache.response_cache import ResponseCache


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


class TestResponseCache:
    def test_miss_when_never_set(self):
        assert ResponseCache().get("nope") is None

    def test_hit_before_ttl(self):
        clock = FakeClock()
        cache = ResponseCache(ttl_seconds=300, clock=clock)
        cache.set("k", {"v": 1})
        clock.now += 299.999
        assert cache.get("k") == {"v": 1}

    def test_miss_at_ttl(self):
        clock = FakeClock()
        cache = ResponseCache(ttl_seconds=300, clock=clock)
        cache.set("k", {"v": 1})
        clock.now += 300
        assert cache.get("k") is None

    def test_expired_entry_stays_until_overwritten(self):
        clock = FakeClock()
        cache = ResponseCache(ttl_seconds=10, clock=clock)
        cache.set("k", "old")
        clock.now += 11
        assert cache.get("k") is None
        assert len(cache) == 1
        cache.set("k", "new")
        assert cache.get("k") == "new"

    def test_clear(self):
        cache = ResponseCache()
        cache.set("a", 1)
        cache.set("b", 2)
        cache.clear()
        assert len(cache) == 0
        assert cache.get("a") is None

    def test_stats(self):
        cache = ResponseCache(ttl_seconds=60)
        cache.set("a", 1)
        stats = cache.stats()
        assert stats.size == 1
        assert stats.ttl_seconds == 60
