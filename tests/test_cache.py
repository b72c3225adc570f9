# ABOUTME: Tests the TTL cache with a controllable clock plus the background sweeper.
# ABOUTME: Covers expiry edges, prefix invalidation, and degraded-cache fallbacks.

import time
import unittest

import pytest

from src.common.cache import CacheSweeper, TTLCache, analytics_key, restaurant_prefix


class FakeClock:
    def __init__(self, start=1000.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class TTLCacheTest(unittest.TestCase):
    def setUp(self):
        self.clock = FakeClock()
        self.cache = TTLCache(default_ttl=300, clock=self.clock)

    def test_hit_until_ttl_elapsed(self):
        self.cache.set("k", "v", ttl=10)
        self.clock.advance(10)
        self.assertEqual(self.cache.get("k"), "v")
        self.clock.advance(0.01)
        self.assertIsNone(self.cache.get("k"))
        self.assertEqual(len(self.cache), 0)

    def test_default_ttl_applies_when_omitted(self):
        self.cache.set("k", "v")
        self.clock.advance(299)
        self.assertEqual(self.cache.get("k"), "v")
        self.clock.advance(2)
        self.assertEqual(self.cache.get("k", "missing"), "missing")

    def test_zero_ttl_never_hits(self):
        self.cache.set("k", "v", ttl=0)
        self.assertIsNone(self.cache.get("k"))

    def test_set_overwrites(self):
        self.cache.set("k", 1)
        self.cache.set("k", 2)
        self.assertEqual(self.cache.get("k"), 2)

    def test_delete_and_clear(self):
        self.cache.set("a", 1)
        self.cache.set("b", 2)
        self.assertTrue(self.cache.delete("a"))
        self.assertFalse(self.cache.delete("a"))
        self.cache.clear()
        self.assertEqual(len(self.cache), 0)

    def test_delete_prefix_scopes_to_restaurant(self):
        self.cache.set(analytics_key("r1", "restaurant"), 1)
        self.cache.set(analytics_key("r1", "category", {"category": "wine"}), 2)
        self.cache.set(analytics_key("r10", "restaurant"), 3)

        removed = self.cache.delete_prefix(restaurant_prefix("r1"))

        self.assertEqual(removed, 2)
        self.assertEqual(self.cache.get(analytics_key("r10", "restaurant")), 3)

    def test_clear_expired_and_stats(self):
        self.cache.set("short", 1, ttl=5)
        self.cache.set("long", 2, ttl=500)
        self.clock.advance(6)

        self.assertEqual(self.cache.stats(), {"total_entries": 2, "expired_entries": 1})
        self.assertEqual(self.cache.clear_expired(), 1)
        self.assertEqual(self.cache.stats(), {"total_entries": 1, "expired_entries": 0})

    def test_get_or_compute_caches_value(self):
        calls = []

        def compute():
            calls.append(1)
            return {"total": 3}

        first = self.cache.get_or_compute("k", 60, compute)
        second = self.cache.get_or_compute("k", 60, compute)
        self.assertEqual(first, second)
        self.assertEqual(len(calls), 1)

        self.clock.advance(61)
        self.cache.get_or_compute("k", 60, compute)
        self.assertEqual(len(calls), 2)

    def test_get_or_compute_propagates_compute_errors(self):
        def boom():
            raise ZeroDivisionError("bad rollup")

        with self.assertRaises(ZeroDivisionError):
            self.cache.get_or_compute("k", 60, boom)
        self.assertIsNone(self.cache.get("k"))


class BrokenCache(TTLCache):
    def get(self, key, default=None):
        raise OSError("cache backend down")

    def set(self, key, value, ttl=None):
        raise OSError("cache backend down")


def test_broken_cache_still_returns_fresh_value():
    cache = BrokenCache()
    assert cache.get_or_compute("k", 60, lambda: 42) == 42


def test_analytics_key_is_stable_for_param_order():
    a = analytics_key("r1", "timeRange", {"start": "2024-01-01", "end": "2024-02-01"})
    b = analytics_key("r1", "timeRange", {"end": "2024-02-01", "start": "2024-01-01"})
    assert a == b
    assert a.startswith("analytics:r1:timeRange:")
    assert analytics_key("r1", "restaurant") == "analytics:r1:restaurant:"


def test_sweeper_rejects_non_positive_interval():
    with pytest.raises(ValueError):
        CacheSweeper(TTLCache(), interval_seconds=0)


def test_sweeper_removes_expired_entries():
    cache = TTLCache()
    cache.set("gone", 1, ttl=0)
    cache.set("kept", 2, ttl=600)
    sweeper = CacheSweeper(cache, interval_seconds=0.01)

    sweeper.start()
    try:
        assert sweeper.running
        deadline = time.monotonic() + 2.0
        while len(cache) > 1 and time.monotonic() < deadline:
            time.sleep(0.01)
    finally:
        sweeper.stop(timeout=1.0)

    assert not sweeper.running
    assert len(cache) == 1
    assert cache.get("kept") == 2
