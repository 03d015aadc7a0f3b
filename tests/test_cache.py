"""Tests for the TTL cache used by the place source."""

import pytest

from trip_planner.cache import TTLCache


class TestTTLCache:

    def test_miss_returns_none(self, clock):
        assert TTLCache(ttl=10, clock=clock).get("missing") is None

    def test_hit_before_expiry(self, clock):
        cache = TTLCache(ttl=10, clock=clock)
        cache.set("k", [1, 2])
        clock.advance(9.9)
        assert cache.get("k") == [1, 2]

    def test_expires_after_ttl(self, clock):
        cache = TTLCache(ttl=10, clock=clock)
        cache.set("k", "v")
        clock.advance(10)
        assert cache.get("k") is None
        assert len(cache) == 0

    def test_empty_list_is_a_hit(self, clock):
        cache = TTLCache(ttl=10, clock=clock)
        cache.set("k", [])
        assert "k" in cache
        assert cache.get("k") == []

    def test_last_write_wins_and_refreshes_ttl(self, clock):
        cache = TTLCache(ttl=10, clock=clock)
        cache.set("k", "old")
        clock.advance(8)
        cache.set("k", "new")
        clock.advance(8)
        assert cache.get("k") == "new"

    def test_rejects_non_positive_ttl(self):
        with pytest.raises(ValueError):
            TTLCache(ttl=0)

    def test_write_sweeps_expired_keys(self, clock):
        cache = TTLCache(ttl=10, clock=clock)
        for i in range(1000):
            cache.set(f"op_{i}", i)
        clock.advance(11)
        cache.set("fresh", "v")
        assert list(cache._entries) == ["fresh"]
        assert len(cache) == 1

    def test_len_counts_only_live_entries(self, clock):
        cache = TTLCache(ttl=10, clock=clock)
        cache.set("old", 1)
        clock.advance(6)
        cache.set("new", 2)
        clock.advance(5)
        assert len(cache) == 1
        assert cache.get("new") == 2
