"""Unit tests for the response cache."""

import threading
import time

import pytest

from roadgraph.core.cache import ResponseCache


@pytest.fixture
def cache():
    return ResponseCache(max_size=5, ttl_seconds=2)


class TestResponseCache:
    def test_put_and_get(self, cache):
        cache.put("[out:json];way(1,2,3,4);out geom;", {"elements": []})
        assert cache.get("[out:json];way(1,2,3,4);out geom;") == {"elements": []}

    def test_cache_miss(self, cache):
        assert cache.get("unknown query") is None

    def test_whitespace_normalization(self, cache):
        cache.put("way(1,2,3,4);\nout geom;", "response")
        assert cache.get("  way(1,2,3,4);   out geom;  ") == "response"

    def test_case_sensitive(self, cache):
        cache.put('way["highway"]', "response")
        assert cache.get('WAY["HIGHWAY"]') is None

    def test_ttl_expiration(self, cache):
        cache.put("expire_me", "old response")
        assert cache.get("expire_me") == "old response"

        time.sleep(2.1)
        assert cache.get("expire_me") is None

    def test_max_size_eviction(self, cache):
        for i in range(6):
            cache.put(f"query_{i}", f"response_{i}")

        assert cache.size == 5
        assert cache.get("query_5") == "response_5"

    def test_invalidate(self, cache):
        cache.put("a", "1")
        cache.put("b", "2")
        assert cache.size == 2

        cache.invalidate()
        assert cache.size == 0
        assert cache.get("a") is None

    def test_size_property(self, cache):
        assert cache.size == 0
        cache.put("q", "r")
        assert cache.size == 1

    def test_concurrent_puts_and_gets(self):
        cache = ResponseCache(max_size=50, ttl_seconds=60)
        errors = []

        def worker(n):
            try:
                for i in range(2000):
                    cache.put(f"query_{n}_{i}", i)
                    cache.get(f"query_{n}_{i - 1}")
            except Exception as exc:
                errors.append(exc)

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        assert cache.size <= 50
