"""Supplier source adapters."""

from .base import (
    BaseSupplierAdapter,
    BaseAPIAdapter,
    BaseScraperAdapter,
    ProductResult,
    ProductSource,
)
from .bnq_api import BnqCatalogAdapter
from .serpapi import SerpApiShoppingAdapter
from .diy_browser import DiyBrowserAdapter
from .ai_estimate import (
    EstimateProvider,
    GenerativeEstimateAdapter,
    gemini_provider,
    openai_provider,
)
from .registry import AdapterRegistry

__all__ = [
    # Base classes
    "BaseSupplierAdapter",
    "BaseAPIAdapter",
    "BaseScraperAdapter",
    # Data structures
    "ProductResult",
    "ProductSource",
    # Real price sources
    "BnqCatalogAdapter",
    "SerpApiShoppingAdapter",
    "DiyBrowserAdapter",
    # Estimators
    "EstimateProvider",
    "GenerativeEstimateAdapter",
    "gemini_provider",
    "openai_provider",
    # Registry
    "AdapterRegistry",
]
