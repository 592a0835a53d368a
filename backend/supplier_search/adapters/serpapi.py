"""SerpAPI Google Shopping adapter.

Price-comparison search across UK retailers via SerpAPI.
Documentation: https://serpapi.com/google-shopping-api
Requires SERPAPI_KEY.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from supplier_search.config import settings
from supplier_search.adapters.base import BaseAPIAdapter, ProductResult, ProductSource
from supplier_search.core.exceptions import AdapterError, ConfigurationError
from supplier_search.utils.normalizer import (
    PriceNormalizer,
    extract_brand,
    parse_size,
)
from supplier_search.utils.retry import http_retry


class SerpApiShoppingAdapter(BaseAPIAdapter):
    """Google Shopping results for the UK market.

    Each result names the retailer in its "source" field, so store_name
    varies per listing. Prices are real listing prices.
    """

    supplier_slug = "serpapi"
    supplier_name = "Google Shopping"
    source = ProductSource.STRUCTURED_API

    API_URL = "https://serpapi.com/search"

    def __init__(self, api_key: Optional[str] = None, **kwargs):
        super().__init__(**kwargs)
        self.api_key = settings.SERPAPI_KEY if api_key is None else api_key

    def is_configured(self) -> bool:
        return bool(self.api_key)

    async def _search(self, query: str, limit: int) -> List[ProductResult]:
        data = await self._call_api(query, num=limit * 2)
        fetched_at = datetime.now(timezone.utc)

        shopping_results = data.get("shopping_results") or []
        if not shopping_results:
            self.logger.info("serpapi_no_results", query=query)
            return []

        results: List[ProductResult] = []
        for item in shopping_results[:limit]:
            try:
                result = self._normalize_item(item, fetched_at)
            except (ValueError, TypeError, AttributeError, ArithmeticError) as e:
                self.logger.warning("serpapi_item_skipped", error=str(e))
                continue
            if result:
                results.append(result)

        return results

    @http_retry
    async def _call_api(self, query: str, num: int) -> Dict[str, Any]:
        """Run a google_shopping search.

        Raises:
            ConfigurationError: If SERPAPI_KEY is not set
            AdapterError: If SerpAPI answers with an error status or an error payload
        """
        if not self.api_key:
            raise ConfigurationError(self.supplier_slug, "SERPAPI_KEY")

        params = {
            "engine": "google_shopping",
            "q": query,
            "location": "United Kingdom",
            "hl": "en",
            "gl": "uk",
            "num": num,
            "api_key": self.api_key,
        }

        async with self._get_client() as client:
            response = await client.get(self.API_URL, params=params)

        if response.status_code >= 400:
            self.logger.warning(
                "serpapi_http_error",
                status_code=response.status_code,
                body=response.text[:500],
            )
            raise AdapterError(self.supplier_slug, f"HTTP {response.status_code}")

        try:
            data = response.json()
        except ValueError as e:
            raise AdapterError(self.supplier_slug, "response is not JSON") from e

        if data.get("error"):
            raise AdapterError(self.supplier_slug, str(data["error"]))
        return data

    def _normalize_item(
        self, item: Dict[str, Any], fetched_at: datetime
    ) -> Optional[ProductResult]:
        """Convert a SerpAPI shopping result to ProductResult."""
        if not isinstance(item, dict):
            return None

        title = item.get("title") or "Unknown Product"
        price = self._parse_price(item)
        size = parse_size(title)

        return ProductResult(
            product_name=title,
            brand=item.get("brand") or extract_brand(title),
            price=price,
            currency=settings.DEFAULT_CURRENCY,
            size_value=size.value,
            size_unit=size.unit,
            size_label=size.label,
            store_name=item.get("source") or self.supplier_name,
            product_url=item.get("link") or item.get("product_link") or "",
            sku=str(item["product_id"]) if item.get("product_id") else None,
            in_stock=item.get("in_stock") is not False,
            last_checked_at=fetched_at,
            rating=_float_or_none(item.get("rating")),
            review_count=_int_or_none(item.get("reviews")),
            price_per_unit=PriceNormalizer.price_per_unit(price, size.value),
            image_url=item.get("thumbnail") or None,
            source=self.source,
        )

    @staticmethod
    def _parse_price(item: Dict[str, Any]):
        """Prefer SerpAPI's pre-parsed number, fall back to the price string."""
        extracted = item.get("extracted_price")
        if isinstance(extracted, (int, float)) and not isinstance(extracted, bool):
            return PriceNormalizer.positive_or_none(
                PriceNormalizer.clean_price_string(extracted)
            )
        price_text = item.get("price")
        if isinstance(price_text, str):
            return PriceNormalizer.positive_or_none(
                PriceNormalizer.extract_price_from_text(price_text)
            )
        return None


def _float_or_none(value: Any) -> Optional[float]:
    try:
        return float(value) if value is not None else None
    except (TypeError, ValueError):
        return None


def _int_or_none(value: Any) -> Optional[int]:
    try:
        return int(value) if value is not None else None
    except (TypeError, ValueError, OverflowError):
        return None
