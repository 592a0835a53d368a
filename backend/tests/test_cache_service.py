"""Tests for the search result cache."""

import pytest

from conftest import make_result
from supplier_search.services.cache_service import SearchCache, cache_key_for_search


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return SearchCache(ttl_seconds=60, clock=clock)


class TestCacheKey:
    """Tests for cache_key_for_search."""

    def test_query_is_case_folded_and_trimmed(self):
        assert cache_key_for_search("  No More Nails ", 5) == cache_key_for_search("no more nails", 5)

    def test_filter_order_does_not_matter(self):
        assert cache_key_for_search("q", 5, ["serpapi", "bnq"]) == cache_key_for_search(
            "q", 5, ["bnq", "serpapi"]
        )

    def test_limit_and_filter_distinguish_keys(self):
        assert cache_key_for_search("q", 5) != cache_key_for_search("q", 10)
        assert cache_key_for_search("q", 5) != cache_key_for_search("q", 5, ["bnq"])

    def test_single_slug_string_not_split(self):
        assert cache_key_for_search("q", 5, "serpapi") == ("q", 5, ("serpapi",))

    def test_no_filter_same_as_empty_filter(self):
        assert cache_key_for_search("q", 5, None) == cache_key_for_search("q", 5, [])


class TestSearchCache:
    """Tests for SearchCache."""

    def test_get_missing_returns_none(self, cache):
        assert cache.get(("q", 5, ())) is None

    def test_set_then_get(self, cache):
        results = [make_result("A", "1.00")]
        cache.set(("q", 5, ()), results)

        assert cache.get(("q", 5, ())) == tuple(results)

    def test_empty_result_is_a_hit(self, cache):
        cache.set(("q", 5, ()), [])

        assert cache.get(("q", 5, ())) == ()

    def test_entry_expires_at_ttl(self, cache, clock):
        cache.set(("q", 5, ()), [make_result("A", "1.00")])

        clock.now = 59.9
        assert cache.get(("q", 5, ())) is not None

        clock.now = 60
        assert cache.get(("q", 5, ())) is None
        assert len(cache) == 0

    def test_set_overwrites_and_restamps(self, cache, clock):
        cache.set(("q", 5, ()), [make_result("Old", "1.00")])
        clock.now = 50
        cache.set(("q", 5, ()), [make_result("New", "2.00")])
        clock.now = 100

        entry = cache.get(("q", 5, ()))
        assert [r.product_name for r in entry] == ["New"]

    def test_clear_returns_count(self, cache):
        cache.set(("a", 5, ()), [])
        cache.set(("b", 5, ()), [])

        assert cache.clear() == 2
        assert len(cache) == 0
        assert cache.get(("a", 5, ())) is None
