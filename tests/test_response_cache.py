"""
Unit tests for ResponseCache, paginate and the cache sweep job.
"""

import pytest

from feedcache.core.exceptions.exceptions import ValidationError
from feedcache.jobs.scheduler import CacheSweeper
from feedcache.services.pagination import paginate
from feedcache.services.response_cache import ResponseCache


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class TestResponseCache:
    """Test cases for ResponseCache."""

    @pytest.fixture
    def clock(self):
        return FakeClock()

    @pytest.fixture
    def cache(self, clock):
        return ResponseCache(ttl_seconds=60, clock=clock)

    def test_get_missing_key(self, cache):
        assert cache.get("feed:x:g0") is None
        assert "feed:x:g0" not in cache

    def test_put_then_get(self, cache):
        cache.put("feed:x:g0", {"title": "X"})
        assert cache.get("feed:x:g0") == {"title": "X"}
        assert "feed:x:g0" in cache

    def test_put_overwrites_live_entry(self, cache):
        cache.put("feed:x:g0", {"title": "old"})
        cache.put("feed:x:g0", {"title": "new"})
        assert cache.get("feed:x:g0") == {"title": "new"}

    def test_entry_expires_after_ttl(self, cache, clock):
        """Test that entries disappear once their TTL has elapsed."""
        entry = cache.put("feed:x:g0", {"title": "X"})
        assert entry.expires_at == 1060.0

        clock.now = 1059.0
        assert cache.get("feed:x:g0") == {"title": "X"}

        clock.now = 1060.0
        assert cache.get("feed:x:g0") is None
        assert cache.stats()["size"] == 0

    def test_per_entry_ttl(self, cache, clock):
        cache.put("short", 1, ttl=5)
        cache.put("long", 2)
        clock.now += 10
        assert cache.get("short") is None
        assert cache.get("long") == 2

    def test_purge_expired(self, cache, clock):
        """Test purge drops expired entries and idle locks only."""
        cache.put("feed:x:g0", 1)
        cache.lock_for("feed:x:g0")
        clock.now += 30
        cache.put("feed:x:g1", 2)
        clock.now += 40

        assert cache.purge_expired() == 1
        assert cache.get("feed:x:g1") == 2
        assert cache.stats() == {"size": 1, "locks": 0, "ttl": 60}

    def test_put_reclaims_superseded_generations(self, cache, clock):
        """Test the cache stays bounded without the sweep job."""
        for generation in range(5):
            key = f"feed:x:g{generation}"
            cache.lock_for(key)
            cache.put(key, generation)
            clock.now += 61

        assert cache.stats() == {"size": 1, "locks": 1, "ttl": 60}
        assert cache.get("feed:x:g4") is None
        assert "feed:x:g3" not in cache

    def test_lock_for_is_stable_per_key(self, cache):
        assert cache.lock_for("a") is cache.lock_for("a")
        assert cache.lock_for("a") is not cache.lock_for("b")

    def test_sweeper_uses_purge(self, cache, clock):
        """Test the scheduled sweep removes expired entries."""
        cache.put("feed:x:g0", 1)
        clock.now += 120
        sweeper = CacheSweeper(cache, interval_minutes=1)
        assert sweeper.sweep() == 1
        assert not sweeper.running

    def test_sweeper_start_and_shutdown(self, cache):
        sweeper = CacheSweeper(cache, interval_minutes=1)
        sweeper.start()
        try:
            assert sweeper.running
        finally:
            sweeper.shutdown()
        assert not sweeper.running


class TestPaginate:
    """Test cases for paginate."""

    @pytest.fixture
    def items(self):
        return list(range(1, 24))

    def test_first_page(self, items):
        result = paginate(items, 1, 10)
        assert result.items == list(range(1, 11))
        assert result.total_items == 23

    def test_last_partial_page(self, items):
        assert paginate(items, 3, 10).items == [21, 22, 23]

    def test_page_beyond_end_is_empty(self, items):
        result = paginate(items, 4, 10)
        assert result.items == []
        assert result.total_items == 23

    @pytest.mark.parametrize("page,limit", [(1, 1), (2, 5), (5, 5), (1, 100), (7, 3)])
    def test_slice_is_contiguous_and_bounded(self, items, page, limit):
        result = paginate(items, page, limit).items
        assert len(result) <= limit
        if result:
            start = items.index(result[0])
            assert result == items[start:start + len(result)]
            assert start == (page - 1) * limit

    def test_empty_items(self):
        assert paginate([], 1, 10) == ([], 0)

    @pytest.mark.parametrize("page,limit", [(0, 10), (-1, 10), (1, 0), (1, -5)])
    def test_invalid_params(self, items, page, limit):
        with pytest.raises(ValidationError):
            paginate(items, page, limit)
