"""Supplier search orchestration service.

Fans a product query out to the registered source adapters, merges and
ranks what comes back, and caches the ranked list.

Degradation ladder:
1. Every active real-price adapter runs concurrently.
2. Only when none of them yields a valid price are the estimators tried,
   one at a time in priority order; the first with a valid price wins.
"""

import asyncio
from typing import Any, Dict, Iterable, List, Optional

import structlog

from supplier_search.adapters.base import BaseSupplierAdapter, ProductResult
from supplier_search.adapters.registry import AdapterRegistry
from supplier_search.services.cache_service import SearchCache, cache_key_for_search

logger = structlog.get_logger(__name__)


DEFAULT_LIMIT = 5
# Each adapter is asked for more than needed to absorb filtering losses
OVERFETCH_FACTOR = 2


class SupplierSearchService:
    """Aggregates product price results across supplier adapters."""

    def __init__(
        self,
        registry: AdapterRegistry,
        cache: Optional[SearchCache] = None,
    ):
        """Initialize supplier search service.

        Args:
            registry: Adapters to search, in priority order
            cache: Result cache, a fresh SearchCache by default
        """
        self.registry = registry
        self.cache = cache if cache is not None else SearchCache()
        self.logger = logger.bind(service="supplier_search")

    async def search(
        self,
        query: str,
        limit: int = DEFAULT_LIMIT,
        adapter_filter: Optional[Iterable[str]] = None,
    ) -> List[ProductResult]:
        """Search suppliers for a product.

        Args:
            query: Free-text product query
            limit: Maximum number of results
            adapter_filter: Optional adapter slugs, or a single slug, to restrict the search to

        Returns:
            Results with a known positive price, cheapest first, at most
            `limit` long. Empty when nothing was found.

        Raises:
            ValueError: If limit is less than 1
        """
        if limit < 1:
            raise ValueError(f"limit must be at least 1, got {limit}")
        if not query or not query.strip():
            return []

        if isinstance(adapter_filter, str):
            adapter_filter = [adapter_filter]
        adapter_filter = list(adapter_filter) if adapter_filter else None
        key = cache_key_for_search(query, limit, adapter_filter)

        cached = self.cache.get(key)
        if cached is not None:
            self.logger.info("search_cache_hit", query=query, count=len(cached))
            return list(cached)

        adapters = self.registry.select(adapter_filter)
        real_sources = [a for a in adapters if not a.fallback_only]
        estimators = [a for a in adapters if a.fallback_only]

        self.logger.info(
            "search_started",
            query=query,
            limit=limit,
            real_sources=[a.supplier_slug for a in real_sources],
            estimators=[a.supplier_slug for a in estimators],
        )

        fetch_limit = limit * OVERFETCH_FACTOR
        results = await self._search_concurrently(real_sources, query, fetch_limit)
        ranked = self._rank(results, limit)

        if not ranked and estimators:
            self.logger.info("falling_back_to_estimates", query=query)
            for estimator in estimators:
                estimates = await self._run_adapter(estimator, query, fetch_limit)
                ranked = self._rank(estimates, limit)
                if ranked:
                    break

        self.cache.set(key, ranked)
        self.logger.info(
            "search_complete",
            query=query,
            count=len(ranked),
            estimated=sum(1 for r in ranked if r.is_estimate),
        )
        return list(ranked)

    def clear_cache(self) -> int:
        """Drop all cached search results."""
        return self.cache.clear()

    def source_status(self) -> List[Dict[str, Any]]:
        """Describe every registered source and whether it can run."""
        return [
            {
                "source": adapter.supplier_slug,
                "name": adapter.supplier_name,
                "type": adapter.adapter_type,
                "configured": adapter.is_configured(),
                "real_price": adapter.provides_real_prices,
            }
            for adapter in self.registry
        ]

    async def _search_concurrently(
        self,
        adapters: List[BaseSupplierAdapter],
        query: str,
        limit: int,
    ) -> List[ProductResult]:
        if not adapters:
            return []
        batches = await asyncio.gather(
            *(self._run_adapter(adapter, query, limit) for adapter in adapters)
        )
        return [result for batch in batches for result in batch]

    async def _run_adapter(
        self,
        adapter: BaseSupplierAdapter,
        query: str,
        limit: int,
    ) -> List[ProductResult]:
        """Run one adapter; anything it raises is logged and becomes []."""
        try:
            results = await adapter.search(query, limit)
        except Exception as e:
            self.logger.error(
                "adapter_failed",
                adapter=adapter.supplier_slug,
                query=query,
                error=str(e),
                exc_info=True,
            )
            return []
        return list(results or [])

    @staticmethod
    def _rank(results: List[ProductResult], limit: int) -> List[ProductResult]:
        """Keep positive prices, sort cheapest first, truncate."""
        priced = [r for r in results if r.has_valid_price]
        priced.sort(key=lambda r: r.price)
        return priced[:limit]


_default_service: Optional[SupplierSearchService] = None


def get_supplier_search_service() -> SupplierSearchService:
    """Get or create the process-wide service over the default registry."""
    global _default_service
    if _default_service is None:
        from supplier_search.adapters.register_adapters import get_default_registry

        _default_service = SupplierSearchService(get_default_registry())
    return _default_service


async def search_suppliers(
    query: str,
    limit: int = DEFAULT_LIMIT,
    adapter_filter: Optional[Iterable[str]] = None,
) -> List[ProductResult]:
    """Search every configured supplier source for `query`.

    See SupplierSearchService.search.
    """
    return await get_supplier_search_service().search(query, limit, adapter_filter)


def clear_cache() -> int:
    """Clear the default service's search cache."""
    return get_supplier_search_service().clear_cache()


def get_search_source_status() -> List[Dict[str, Any]]:
    """Configuration status of every default source."""
    return get_supplier_search_service().source_status()
