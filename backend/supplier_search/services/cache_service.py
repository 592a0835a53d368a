"""In-memory TTL cache for supplier search results.

Entries live for the process lifetime and expire purely by age; the only
invalidation is a full clear.
"""

import time
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, Optional, Tuple

import structlog

from supplier_search.adapters.base import ProductResult
from supplier_search.config import settings

logger = structlog.get_logger(__name__)


CacheKey = Tuple[str, int, Tuple[str, ...]]


@dataclass(frozen=True)
class CacheEntry:
    results: Tuple[ProductResult, ...]
    timestamp: float


class SearchCache:
    """Time-bounded memoization of search results.

    Results are stored as tuples; ProductResult itself is frozen, so a
    cached entry cannot be altered by callers.
    """

    def __init__(
        self,
        ttl_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize the cache.

        Args:
            ttl_seconds: Entry lifetime, defaults to settings.SEARCH_CACHE_TTL_SECONDS
            clock: Monotonic time source, injectable for tests
        """
        self.ttl_seconds = (
            settings.SEARCH_CACHE_TTL_SECONDS if ttl_seconds is None else ttl_seconds
        )
        self._clock = clock
        self._entries: Dict[CacheKey, CacheEntry] = {}
        self.logger = logger.bind(service="search_cache")

    def get(self, key: CacheKey) -> Optional[Tuple[ProductResult, ...]]:
        """Return cached results, or None if missing or expired."""
        entry = self._entries.get(key)
        if entry is None:
            self.logger.debug("cache_miss", key=key)
            return None

        age = self._clock() - entry.timestamp
        if age >= self.ttl_seconds:
            del self._entries[key]
            self.logger.debug("cache_expired", key=key, age=round(age, 1))
            return None

        self.logger.debug("cache_hit", key=key, age=round(age, 1))
        return entry.results

    def set(self, key: CacheKey, results: Iterable[ProductResult]) -> None:
        """Store results stamped with the current time."""
        entry = CacheEntry(results=tuple(results), timestamp=self._clock())
        self._entries[key] = entry
        self.logger.debug("cache_set", key=key, count=len(entry.results))

    def clear(self) -> int:
        """Drop every entry.

        Returns:
            Number of entries removed
        """
        count = len(self._entries)
        self._entries.clear()
        self.logger.info("cache_cleared", entries=count)
        return count

    def __len__(self) -> int:
        return len(self._entries)


def cache_key_for_search(
    query: str,
    limit: int,
    adapter_filter: Optional[Iterable[str]] = None,
) -> CacheKey:
    """Generate the cache key for a search.

    The query is case-folded and the adapter filter sorted so equivalent
    searches share an entry regardless of filter order.

    Args:
        query: Search query
        limit: Result limit
        adapter_filter: Optional adapter slugs

    Returns:
        Hashable cache key
    """
    if isinstance(adapter_filter, str):
        adapter_filter = [adapter_filter]
    filter_key = tuple(sorted(set(adapter_filter))) if adapter_filter else ()
    return (query.strip().lower(), limit, filter_key)
