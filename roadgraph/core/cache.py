"""Response cache for upstream road-data queries.

Uses an LRU dict with TTL expiration so repeated analyses of the same
bounding box do not hit the Overpass endpoints again. One cache is shared
by every request thread of the web server, so all access goes through a
lock.
"""

from __future__ import annotations

import hashlib
import logging
import re
import threading
import time
from typing import Any, Optional

logger = logging.getLogger("roadgraph.core.cache")


class ResponseCache:
    """In-memory LRU cache with TTL for decoded upstream responses."""

    def __init__(self, max_size: int = 64, ttl_seconds: int = 900):
        self.max_size = max_size
        self.ttl = ttl_seconds
        self._cache: dict[str, tuple[Any, float]] = {}
        self._lock = threading.Lock()

    @staticmethod
    def _normalize(query: str) -> str:
        """Collapse whitespace so reformatted queries share a key."""
        return re.sub(r"\s+", " ", query.strip())

    @staticmethod
    def _hash(text: str) -> str:
        return hashlib.sha256(text.encode()).hexdigest()[:16]

    def get(self, query: str) -> Optional[Any]:
        """Look up a cached response. Returns None on miss."""
        key = self._hash(self._normalize(query))
        with self._lock:
            entry = self._cache.get(key)
            if entry is None:
                return None
            response, ts = entry
            if time.time() - ts > self.ttl:
                self._cache.pop(key, None)
                return None
        logger.debug("Cache hit for query %s", key)
        return response

    def put(self, query: str, response: Any) -> None:
        """Store a response in the cache."""
        key = self._hash(self._normalize(query))
        with self._lock:
            if key not in self._cache and len(self._cache) >= self.max_size:
                oldest_key = min(self._cache, key=lambda k: self._cache[k][1])
                self._cache.pop(oldest_key, None)
            self._cache[key] = (response, time.time())

    def invalidate(self) -> None:
        """Clear all cached responses."""
        with self._lock:
            self._cache.clear()
        logger.info("Response cache cleared")

    @property
    def size(self) -> int:
        return len(self._cache)
