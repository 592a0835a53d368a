"""Supplier product-price search.

This package provides:
- Source adapters for affiliate APIs, shopping search, browser scraping
  and generative price estimates
- A normalized ProductResult shape with price provenance
- An aggregator that ranks results by price and caches them
- Lifecycle hooks for releasing the shared browser
"""

from .adapters.base import ProductResult, ProductSource
from .lifecycle import shutdown, supplier_search_lifespan
from .services.supplier_service import (
    SupplierSearchService,
    clear_cache,
    get_search_source_status,
    search_suppliers,
)

__all__ = [
    # Data structures
    "ProductResult",
    "ProductSource",
    # Search
    "SupplierSearchService",
    "search_suppliers",
    "clear_cache",
    "get_search_source_status",
    # Lifecycle
    "shutdown",
    "supplier_search_lifespan",
]
