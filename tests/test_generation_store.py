"""
Unit tests for GenerationStore and CacheKeyGenerator.
"""

import threading

import pytest

from feedcache.schemas.feed import PageQuery
from feedcache.services.cache_keys import CacheKeyGenerator
from feedcache.services.generation_store import GenerationStore


class TestGenerationStore:
    """Test cases for GenerationStore."""

    @pytest.fixture
    def store(self):
        return GenerationStore()

    def test_unseen_show_is_at_epoch(self, store):
        """Test that shows never bumped report generation 0."""
        assert store.current("never-seen") == 0
        assert store.snapshot() == {}

    def test_bump_strictly_increases(self, store):
        """Test each bump returns a larger marker and current() observes it."""
        seen = [store.current("x")]
        for _ in range(5):
            generation = store.bump("x")
            assert generation > seen[-1]
            assert store.current("x") == generation
            seen.append(generation)
        assert seen == [0, 1, 2, 3, 4, 5]

    def test_bump_is_per_show(self, store):
        """Test bumping one show leaves the others alone."""
        store.bump("x")
        store.bump("x")
        store.bump("y")
        assert store.snapshot() == {"x": 2, "y": 1}
        assert store.current("z") == 0

    def test_concurrent_bumps_are_not_lost(self, store):
        """Test read-modify-write is atomic across threads."""
        def worker():
            for _ in range(200):
                store.bump("x")

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert store.current("x") == 1600


class TestCacheKeyGenerator:
    """Test cases for CacheKeyGenerator."""

    @pytest.fixture
    def store(self):
        return GenerationStore()

    def test_generation_policy_ignores_pagination(self, store):
        """Test keys only depend on show and generation by default."""
        keys = CacheKeyGenerator(store)
        first = keys.key_for("x", PageQuery(page=1, limit=5))
        assert first == keys.key_for("x", PageQuery(page=3, limit=6))
        assert first == keys.key_for("x")
        assert first == "feed:x:g0"

    def test_keys_differ_per_show(self, store):
        keys = CacheKeyGenerator(store)
        assert keys.key_for("x") != keys.key_for("y")

    def test_bump_moves_every_key(self, store):
        """Test that after a bump no key matches one computed before it."""
        keys = CacheKeyGenerator(store, policy="page")
        queries = [None, PageQuery(page=1, limit=5), PageQuery(page=2, limit=6)]
        before = {keys.key_for("x", q) for q in queries}
        before |= {CacheKeyGenerator(store).key_for("x", q) for q in queries}

        store.bump("x")

        after = {keys.key_for("x", q) for q in queries}
        after |= {CacheKeyGenerator(store).key_for("x", q) for q in queries}
        assert before.isdisjoint(after)

    def test_page_policy_folds_in_page_and_limit(self, store):
        keys = CacheKeyGenerator(store, policy="page")
        assert keys.key_for("x", PageQuery(page=2, limit=5)) == "feed:x:g0:p2:l5"
        assert keys.key_for("x", PageQuery(limit=5)) != keys.key_for("x", PageQuery(limit=6))

    def test_page_policy_treats_no_query_as_default_page(self, store):
        keys = CacheKeyGenerator(store, policy="page")
        assert keys.key_for("x") == keys.key_for("x", PageQuery())

    def test_unknown_policy_is_rejected(self, store):
        with pytest.raises(ValueError):
            CacheKeyGenerator(store, policy="url")
