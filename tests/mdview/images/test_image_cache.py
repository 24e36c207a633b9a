"""Tests for ImageCache LRU behavior and size accounting."""

import threading

import pytest
from conftest import make_decoded

from mdview.config import Settings
from mdview.images.cache import ImageCache


@pytest.fixture
def small_cache() -> ImageCache:
    """Cache with 100 byte capacity for easy LRU testing."""
    return ImageCache(100)


class TestBasicOperations:
    def test_put_and_get(self, small_cache):
        image = make_decoded(10)
        assert small_cache.put("a", image)
        assert small_cache.get("a") is image

    def test_get_missing_returns_none(self, small_cache):
        assert small_cache.get("missing") is None

    def test_size_accounting(self, small_cache):
        small_cache.put("a", make_decoded(10))
        small_cache.put("b", make_decoded(25))
        assert small_cache.size == 35
        assert len(small_cache) == 2

    def test_overwrite_replaces_size(self, small_cache):
        small_cache.put("a", make_decoded(10))
        small_cache.put("a", make_decoded(30))
        assert small_cache.size == 30
        assert len(small_cache) == 1

    def test_remove(self, small_cache):
        small_cache.put("a", make_decoded(10))
        assert small_cache.remove("a")
        assert not small_cache.remove("a")
        assert small_cache.size == 0

    def test_evict_all(self, small_cache):
        small_cache.put("a", make_decoded(10))
        small_cache.put("b", make_decoded(10))
        small_cache.evict_all()
        assert len(small_cache) == 0
        assert small_cache.size == 0
        assert small_cache.get("a") is None

    def test_evict_all_on_empty_cache(self, small_cache):
        small_cache.evict_all()
        assert len(small_cache) == 0

    def test_negative_capacity_rejected(self):
        with pytest.raises(ValueError):
            ImageCache(-1)

    def test_capacity_from_settings(self):
        settings = Settings(memory_budget_bytes=800, image_cache_fraction=0.125)
        assert ImageCache.from_settings(settings).capacity == 100


class TestLRUEviction:
    def test_entry_larger_than_capacity_rejected(self, small_cache):
        assert not small_cache.put("huge", make_decoded(101))
        assert small_cache.get("huge") is None
        assert small_cache.size == 0

    def test_entry_exactly_capacity_accepted(self, small_cache):
        assert small_cache.put("full", make_decoded(100))
        assert small_cache.size == 100

    def test_rejected_entry_drops_previous_value(self, small_cache):
        small_cache.put("k", make_decoded(10))
        assert not small_cache.put("k", make_decoded(500))
        assert small_cache.get("k") is None
        assert small_cache.size == 0

    def test_rejected_entry_keeps_other_entries(self, small_cache):
        small_cache.put("a", make_decoded(40))
        small_cache.put("huge", make_decoded(101))
        assert small_cache.get("a") is not None

    def test_evicts_least_recently_used_first(self, small_cache):
        small_cache.put("first", make_decoded(40))
        small_cache.put("second", make_decoded(40))
        small_cache.put("third", make_decoded(40))

        assert "first" not in small_cache
        assert "second" in small_cache
        assert "third" in small_cache
        assert small_cache.size == 80

    def test_get_refreshes_recency(self, small_cache):
        small_cache.put("first", make_decoded(40))
        small_cache.put("second", make_decoded(40))
        small_cache.get("first")
        small_cache.put("third", make_decoded(40))

        assert "first" in small_cache
        assert "second" not in small_cache

    def test_contains_does_not_refresh_recency(self, small_cache):
        small_cache.put("first", make_decoded(40))
        small_cache.put("second", make_decoded(40))
        assert "first" in small_cache
        small_cache.put("third", make_decoded(40))

        assert "first" not in small_cache

    def test_evicts_as_many_as_needed(self, small_cache):
        for key in "abcde":
            small_cache.put(key, make_decoded(20))
        small_cache.put("big", make_decoded(70))

        assert [k for k in "abcde" if k in small_cache] == ["e"]
        assert small_cache.size == 90

    def test_size_never_exceeds_capacity(self, small_cache):
        for i in range(50):
            small_cache.put(f"k{i}", make_decoded(7 + i % 30))
            assert small_cache.size <= small_cache.capacity


class TestConcurrency:
    def test_concurrent_puts_and_gets(self):
        cache = ImageCache(1000)

        def worker(prefix: str) -> None:
            for i in range(200):
                cache.put(f"{prefix}{i % 20}", make_decoded(10 + i % 15))
                cache.get(f"{prefix}{(i + 7) % 20}")

        threads = [threading.Thread(target=worker, args=(p,)) for p in "abcd"]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        keys = [f"{p}{i}" for p in "abcd" for i in range(20)]
        assert cache.size <= cache.capacity
        assert cache.size == sum(cache.get(k).byte_size for k in keys if k in cache)
