"""Build the default adapter registry.

Order matters: real-price sources first, then estimators in the order
they should be tried when every real source comes up empty.
"""

from typing import Optional

import structlog

from supplier_search.config import Settings, settings as default_settings
from supplier_search.adapters.ai_estimate import (
    GenerativeEstimateAdapter,
    gemini_provider,
    openai_provider,
)
from supplier_search.adapters.bnq_api import BnqCatalogAdapter
from supplier_search.adapters.diy_browser import DiyBrowserAdapter
from supplier_search.adapters.registry import AdapterRegistry
from supplier_search.adapters.serpapi import SerpApiShoppingAdapter

logger = structlog.get_logger(__name__)


def build_default_registry(
    settings: Settings = default_settings,
    browser_manager=None,
) -> AdapterRegistry:
    """Create every adapter and register the enabled ones.

    Args:
        settings: Settings to read credentials and ENABLED_ADAPTERS from
        browser_manager: BrowserManager for scraper adapters,
            defaults to the process-wide singleton

    Returns:
        AdapterRegistry in priority order
    """
    adapters = [
        # Real price sources
        BnqCatalogAdapter(
            api_key=settings.BNQ_API_KEY,
            account_sid=settings.BNQ_ACCOUNT_SID,
            campaign_id=settings.BNQ_CAMPAIGN_ID,
        ),
        SerpApiShoppingAdapter(api_key=settings.SERPAPI_KEY),
        DiyBrowserAdapter(browser_manager=browser_manager),
        # Estimators, primary first
        GenerativeEstimateAdapter(gemini_provider(settings)),
        GenerativeEstimateAdapter(openai_provider(settings)),
    ]

    enabled = settings.get_enabled_adapters()
    registry = AdapterRegistry()
    for adapter in adapters:
        if enabled and adapter.supplier_slug not in enabled:
            continue
        try:
            registry.register(adapter)
        except ValueError as e:
            logger.error(
                "adapter_registration_failed",
                supplier_slug=adapter.supplier_slug,
                error=str(e),
            )

    logger.info(
        "all_adapters_registered",
        count=len(registry),
        adapters=registry.slugs(),
        configured=[a.supplier_slug for a in registry if a.is_configured()],
    )
    return registry


_default_registry: Optional[AdapterRegistry] = None


def get_default_registry() -> AdapterRegistry:
    """Get the process-wide default registry, building it on first use."""
    global _default_registry
    if _default_registry is None:
        _default_registry = build_default_registry()
    return _default_registry
