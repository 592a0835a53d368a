"""B&Q affiliate catalog adapter.

Searches the B&Q product catalog through the Impact partner API.
Documentation: https://integrations.impact.com/impact-publisher/reference/catalogs
Requires BNQ_API_KEY and BNQ_ACCOUNT_SID; BNQ_CAMPAIGN_ID narrows the
search to the B&Q campaign.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from supplier_search.config import settings
from supplier_search.adapters.base import BaseAPIAdapter, ProductResult, ProductSource
from supplier_search.core.exceptions import AdapterError, ConfigurationError
from supplier_search.utils.normalizer import PriceNormalizer, parse_size
from supplier_search.utils.retry import http_retry


class BnqCatalogAdapter(BaseAPIAdapter):
    """B&Q catalog search via the Impact affiliate API.

    Returns real prices with affiliate tracking links.
    """

    supplier_slug = "bnq"
    supplier_name = "B&Q"
    source = ProductSource.STRUCTURED_API

    API_BASE_URL = "https://api.impact.com/Mediapartners"

    def __init__(
        self,
        api_key: Optional[str] = None,
        account_sid: Optional[str] = None,
        campaign_id: Optional[str] = None,
        **kwargs,
    ):
        super().__init__(**kwargs)
        self.api_key = settings.BNQ_API_KEY if api_key is None else api_key
        self.account_sid = settings.BNQ_ACCOUNT_SID if account_sid is None else account_sid
        self.campaign_id = settings.BNQ_CAMPAIGN_ID if campaign_id is None else campaign_id

    def is_configured(self) -> bool:
        return bool(self.api_key and self.account_sid)

    async def _search(self, query: str, limit: int) -> List[ProductResult]:
        data = await self._call_api(query, page_size=limit)
        fetched_at = datetime.now(timezone.utc)

        items = data.get("Items")
        if not isinstance(items, list):
            self.logger.info("bnq_no_items", query=query)
            return []

        results: List[ProductResult] = []
        for item in items[:limit]:
            try:
                result = self._normalize_item(item, fetched_at)
            except (ValueError, TypeError, AttributeError, ArithmeticError) as e:
                self.logger.warning("bnq_item_skipped", error=str(e))
                continue
            if result:
                results.append(result)

        return results

    @http_retry
    async def _call_api(self, query: str, page_size: int) -> Dict[str, Any]:
        """Call the Impact catalog item search.

        Args:
            query: Search query string
            page_size: Number of items to request

        Returns:
            API response as dictionary

        Raises:
            ConfigurationError: If BNQ_API_KEY or BNQ_ACCOUNT_SID is not set
            AdapterError: If the API answers with an error status or non-JSON body
            httpx.TimeoutException: If request times out (retried)
            httpx.NetworkError: If network error occurs (retried)
        """
        if not self.api_key:
            raise ConfigurationError(self.supplier_slug, "BNQ_API_KEY")
        if not self.account_sid:
            raise ConfigurationError(self.supplier_slug, "BNQ_ACCOUNT_SID")

        url = f"{self.API_BASE_URL}/{self.account_sid}/Catalogs/ItemSearch.json"
        params = {
            "Query": query,
            "PageSize": str(page_size),
            "CampaignId": self.campaign_id or "",
        }

        self.logger.debug("bnq_api_call", query=query, page_size=page_size)

        async with self._get_client() as client:
            response = await client.get(
                url,
                params=params,
                auth=(self.account_sid, self.api_key),
                headers={"Accept": "application/json"},
            )

        if response.status_code >= 400:
            self.logger.warning(
                "bnq_api_http_error",
                status_code=response.status_code,
                body=response.text[:500],
            )
            raise AdapterError(self.supplier_slug, f"HTTP {response.status_code}")

        try:
            return response.json()
        except ValueError as e:
            raise AdapterError(self.supplier_slug, "response is not JSON") from e

    def _normalize_item(
        self, item: Dict[str, Any], fetched_at: datetime
    ) -> Optional[ProductResult]:
        """Convert an Impact catalog item to ProductResult."""
        if not isinstance(item, dict):
            return None

        name = item.get("Name") or item.get("ProductName") or "Unknown Product"
        price = PriceNormalizer.positive_or_none(
            PriceNormalizer.clean_price_string(item.get("CurrentPrice") or item.get("Price"))
        )

        size_text = _str_or_none(item.get("Size"))
        size = parse_size(size_text) if size_text else parse_size(name)

        return ProductResult(
            product_name=name,
            brand=item.get("Manufacturer") or item.get("Brand") or None,
            price=price,
            currency=item.get("Currency") or settings.DEFAULT_CURRENCY,
            size_value=size.value,
            size_unit=size.unit,
            size_label=size_text or size.label,
            store_name=self.supplier_name,
            product_url=item.get("TrackingLink") or item.get("Url") or item.get("ProductUrl") or "",
            sku=_str_or_none(item.get("CatalogItemId") or item.get("Sku")),
            in_stock=item.get("StockAvailability") != "OutOfStock",
            last_checked_at=fetched_at,
            price_per_unit=PriceNormalizer.price_per_unit(price, size.value),
            image_url=item.get("ImageUrl") or item.get("Image") or None,
            source=self.source,
        )


def _str_or_none(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    return str(value)
