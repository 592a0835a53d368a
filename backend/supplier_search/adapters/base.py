"""Base supplier adapter interface.

All source adapters inherit from BaseSupplierAdapter, implement _search()
and return ProductResult objects. The public search() wrapper enforces the
adapter contract: it is gated on configuration, bounded in time, and
never raises.
"""

import asyncio
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, AsyncIterator, Dict, List, Optional

import httpx
import structlog

from supplier_search.config import settings
from supplier_search.core.exceptions import SupplierSearchException


class ProductSource(str, Enum):
    """Where a ProductResult's price came from."""

    STRUCTURED_API = "structured-api"
    SCRAPE = "scrape"
    AI_ESTIMATE_PRIMARY = "ai-estimate-primary"
    AI_ESTIMATE_SECONDARY = "ai-estimate-secondary"
    MANUAL = "manual"


REAL_PRICE_SOURCES = frozenset({ProductSource.STRUCTURED_API, ProductSource.SCRAPE})
ESTIMATE_SOURCES = frozenset(
    {ProductSource.AI_ESTIMATE_PRIMARY, ProductSource.AI_ESTIMATE_SECONDARY}
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class ProductResult:
    """Normalized product listing returned by every adapter."""

    product_name: str
    price: Optional[Decimal]
    store_name: str
    source: ProductSource
    brand: Optional[str] = None
    currency: str = field(default_factory=lambda: settings.DEFAULT_CURRENCY)
    size_value: Optional[float] = None
    size_unit: Optional[str] = None
    size_label: Optional[str] = None
    product_url: str = ""
    sku: Optional[str] = None
    in_stock: Optional[bool] = None
    last_checked_at: datetime = field(default_factory=_utcnow)
    rating: Optional[float] = None
    review_count: Optional[int] = None
    price_per_unit: Optional[Decimal] = None
    image_url: Optional[str] = None
    category: Optional[str] = None
    is_real_price: Optional[bool] = None

    def __post_init__(self):
        """Validate and fill derived fields after initialization."""
        if not self.product_name or not self.product_name.strip():
            raise ValueError("product_name is required")
        if self.price is not None and self.price < 0:
            raise ValueError("price must be a non-negative Decimal or None")
        if self.product_url is None:
            object.__setattr__(self, "product_url", "")
        if not self.currency:
            object.__setattr__(self, "currency", settings.DEFAULT_CURRENCY)

        source = ProductSource(self.source)
        object.__setattr__(self, "source", source)

        if self.is_real_price is None:
            object.__setattr__(self, "is_real_price", source in REAL_PRICE_SOURCES)
        elif self.is_real_price and source in ESTIMATE_SOURCES:
            raise ValueError(f"{source.value} results cannot carry a real price")

    @property
    def has_valid_price(self) -> bool:
        return self.price is not None and self.price > 0

    @property
    def is_estimate(self) -> bool:
        return not self.is_real_price

    def to_dict(self) -> Dict[str, Any]:
        """JSON-friendly representation for API consumers."""
        return {
            "productName": self.product_name,
            "brand": self.brand,
            "price": float(self.price) if self.price is not None else None,
            "currency": self.currency,
            "sizeValue": self.size_value,
            "sizeUnit": self.size_unit,
            "sizeLabel": self.size_label,
            "storeName": self.store_name,
            "productUrl": self.product_url,
            "sku": self.sku,
            "inStock": self.in_stock,
            "lastCheckedAt": self.last_checked_at.isoformat(),
            "rating": self.rating,
            "reviewCount": self.review_count,
            "pricePerUnit": (
                float(self.price_per_unit) if self.price_per_unit is not None else None
            ),
            "imageUrl": self.image_url,
            "category": self.category,
            "source": self.source.value,
            "isRealPrice": self.is_real_price,
        }


class BaseSupplierAdapter(ABC):
    """Abstract base class for all supplier adapters (API, scraper, estimate).

    Subclasses implement _search(). Callers use search(), which never
    raises: missing credentials, timeouts and errors all become [].
    """

    supplier_slug: str = ""  # Must be overridden in subclass (e.g., "bnq", "serpapi")
    supplier_name: str = ""  # Must be overridden in subclass (e.g., "B&Q")
    adapter_type: str = ""  # 'api', 'scraper' or 'estimate'
    source: ProductSource = ProductSource.MANUAL
    fallback_only: bool = False  # Estimators only run when real sources come up empty

    def __init__(self, timeout: Optional[float] = None):
        self.timeout = timeout or settings.ADAPTER_TIMEOUT_SECONDS
        self.logger = structlog.get_logger(__name__).bind(adapter=self.supplier_slug)

    @property
    def provides_real_prices(self) -> bool:
        return self.source in REAL_PRICE_SOURCES

    def is_configured(self) -> bool:
        """Whether the credentials this adapter needs are present."""
        return True

    async def search(self, query: str, limit: int = 10) -> List[ProductResult]:
        """Search this source for products.

        Args:
            query: Free-text product query
            limit: Result count hint

        Returns:
            List of ProductResult, empty on any failure
        """
        if not self.is_configured():
            self.logger.info("adapter_not_configured", query=query)
            return []

        try:
            results = await asyncio.wait_for(
                self._search(query, limit), timeout=self.timeout
            )
        except asyncio.TimeoutError:
            self.logger.warning("adapter_timeout", query=query, timeout=self.timeout)
            return []
        except SupplierSearchException as e:
            self.logger.error("adapter_failed", query=query, error=str(e))
            return []
        except Exception as e:
            self.logger.error(
                "adapter_unexpected_error",
                query=query,
                error=str(e),
                exc_info=True,
            )
            return []

        self.logger.info("adapter_search_complete", query=query, count=len(results))
        return results

    @abstractmethod
    async def _search(self, query: str, limit: int) -> List[ProductResult]:
        """Fetch and normalize results from this source.

        Args:
            query: Free-text product query
            limit: Result count hint

        Returns:
            List of ProductResult objects

        Raises:
            AdapterError: If the source cannot be queried
        """
        pass

    async def cleanup(self) -> None:
        """Clean up resources owned by this adapter."""
        pass


class BaseAPIAdapter(BaseSupplierAdapter):
    """Base class for HTTP API adapters.

    An httpx.AsyncClient may be injected (shared pool or tests);
    otherwise each call opens a short-lived client.
    """

    adapter_type = "api"
    source = ProductSource.STRUCTURED_API

    def __init__(
        self,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = None,
    ):
        super().__init__(timeout=timeout)
        self.http_client = http_client
        self._http_timeout = settings.HTTP_TIMEOUT_SECONDS

    @asynccontextmanager
    async def _get_client(self) -> AsyncIterator[httpx.AsyncClient]:
        if self.http_client is not None:
            yield self.http_client
            return
        async with httpx.AsyncClient(timeout=self._http_timeout) as client:
            yield client


class BaseScraperAdapter(BaseSupplierAdapter):
    """Base class for scraping-based adapters using Playwright."""

    adapter_type = "scraper"
    source = ProductSource.SCRAPE

    def __init__(self, browser_manager=None, timeout: Optional[float] = None):
        super().__init__(timeout=timeout)
        self.browser_manager = browser_manager  # Injected, defaults to the shared manager
