"""Generative price-estimate adapters.

Last-resort fallback when no real price source returns data: a text
model is asked for plausible UK trade-supplier listings. One adapter
class covers every provider; an EstimateProvider supplies the endpoint,
credentials and request/response shapes.

Every result is tagged with the provider's estimate source and
is_real_price=False so consumers can tell estimates from verified prices.
"""

import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple

from supplier_search.config import Settings, settings as default_settings
from supplier_search.adapters.base import BaseAPIAdapter, ProductResult, ProductSource
from supplier_search.core.exceptions import (
    AdapterError,
    ConfigurationError,
    EstimateParseError,
)
from supplier_search.utils.normalizer import PriceNormalizer, extract_json_array
from supplier_search.utils.retry import llm_retry


PRODUCT_CATEGORIES = [
    "paint",
    "wood",
    "screws",
    "tools",
    "adhesive",
    "sealant",
    "electrical",
    "plumbing",
    "flooring",
    "hardware",
]

SYSTEM_PROMPT = """You are a UK trade supplies product database. When given a search query, return realistic product results that would be found at major UK trade suppliers like B&Q, Screwfix, Toolstation, Wickes, Travis Perkins.

Return ONLY valid JSON array with this exact structure (no markdown, no explanation):
[
  {{
    "productName": "Full product name with brand and size",
    "brand": "Brand name or null",
    "price": 12.99,
    "currency": "GBP",
    "sizeValue": 5,
    "sizeUnit": "L",
    "sizeLabel": "5L",
    "storeName": "B&Q",
    "productUrl": "https://www.diy.com/departments/product-name/12345",
    "sku": "12345678",
    "inStock": true,
    "category": "paint"
  }}
]

Rules:
- Return {limit} products maximum
- Use realistic UK prices in GBP
- Include a mix of stores (B&Q, Screwfix, Toolstation, Wickes)
- Use real brand names common in UK (Dulux, Ronseal, UniBond, DeWalt, Stanley, etc.)
- Make product names specific and realistic
- Include size/quantity where applicable
- Sort by price (lowest first)
- Include a category for each product ({categories})"""

TEMPERATURE = 0.3
MAX_OUTPUT_TOKENS = 2000

# (url, headers, json body)
RequestSpec = Tuple[str, Dict[str, str], Dict[str, Any]]


@dataclass(frozen=True)
class EstimateProvider:
    """Connection details and wire format for one text model provider."""

    slug: str
    name: str
    source: ProductSource
    api_key: str
    endpoint: str
    model: str
    build_request: Callable[["EstimateProvider", str, str], RequestSpec]
    extract_text: Callable[[Dict[str, Any]], str]
    timeout: Optional[float] = None  # HTTP timeout for one model call

    @property
    def configured(self) -> bool:
        return bool(self.api_key and self.endpoint)


def _gemini_request(provider: EstimateProvider, system: str, user: str) -> RequestSpec:
    url = f"{provider.endpoint}/models/{provider.model}:generateContent"
    headers = {
        "Content-Type": "application/json",
        "x-goog-api-key": provider.api_key,
    }
    body = {
        "systemInstruction": {"parts": [{"text": system}]},
        "contents": [{"role": "user", "parts": [{"text": user}]}],
        "generationConfig": {
            "temperature": TEMPERATURE,
            "maxOutputTokens": MAX_OUTPUT_TOKENS,
        },
    }
    return url, headers, body


def _gemini_text(payload: Dict[str, Any]) -> str:
    candidates = payload.get("candidates") or [{}]
    parts = (candidates[0].get("content") or {}).get("parts") or [{}]
    return parts[0].get("text") or ""


def _openai_request(provider: EstimateProvider, system: str, user: str) -> RequestSpec:
    url = f"{provider.endpoint}/chat/completions"
    headers = {
        "Content-Type": "application/json",
        "Authorization": f"Bearer {provider.api_key}",
    }
    body = {
        "model": provider.model,
        "messages": [
            {"role": "system", "content": system},
            {"role": "user", "content": user},
        ],
        "max_tokens": MAX_OUTPUT_TOKENS,
        "temperature": TEMPERATURE,
    }
    return url, headers, body


def _openai_text(payload: Dict[str, Any]) -> str:
    choices = payload.get("choices") or [{}]
    return (choices[0].get("message") or {}).get("content") or ""


def gemini_provider(settings: Settings = default_settings) -> EstimateProvider:
    """Primary estimator: Google Gemini."""
    return EstimateProvider(
        slug="gemini",
        name="Gemini",
        source=ProductSource.AI_ESTIMATE_PRIMARY,
        api_key=settings.GEMINI_API_KEY,
        endpoint=settings.GEMINI_BASE_URL,
        model=settings.GEMINI_MODEL,
        build_request=_gemini_request,
        extract_text=_gemini_text,
        timeout=settings.LLM_TIMEOUT_SECONDS,
    )


def openai_provider(settings: Settings = default_settings) -> EstimateProvider:
    """Secondary estimator: any OpenAI-compatible chat completions endpoint."""
    return EstimateProvider(
        slug="openai",
        name="OpenAI",
        source=ProductSource.AI_ESTIMATE_SECONDARY,
        api_key=settings.OPENAI_API_KEY,
        endpoint=settings.OPENAI_BASE_URL,
        model=settings.OPENAI_MODEL,
        build_request=_openai_request,
        extract_text=_openai_text,
        timeout=settings.LLM_TIMEOUT_SECONDS,
    )


class GenerativeEstimateAdapter(BaseAPIAdapter):
    """Estimated listings from a text model, never presented as real prices."""

    adapter_type = "estimate"
    fallback_only = True

    def __init__(self, provider: EstimateProvider, **kwargs):
        self.provider = provider
        self.supplier_slug = provider.slug
        self.supplier_name = f"{provider.name} estimate"
        self.source = provider.source
        super().__init__(**kwargs)
        self._http_timeout = provider.timeout or default_settings.LLM_TIMEOUT_SECONDS

    def is_configured(self) -> bool:
        return self.provider.configured

    async def _search(self, query: str, limit: int) -> List[ProductResult]:
        text = await self._call_model(query, limit)
        fetched_at = datetime.now(timezone.utc)

        try:
            items = extract_json_array(text)
        except ValueError as e:
            raise EstimateParseError(self.provider.name, str(e)) from e

        results: List[ProductResult] = []
        for index, item in enumerate(items):
            try:
                result = self._normalize_item(item, fetched_at)
            except (ValueError, TypeError, ArithmeticError) as e:
                self.logger.warning("estimate_item_skipped", index=index, error=str(e))
                continue
            if result:
                results.append(result)
            if len(results) >= limit:
                break

        self.logger.info("estimates_parsed", query=query, count=len(results))
        return results

    @llm_retry
    async def _call_model(self, query: str, limit: int) -> str:
        """Send the prompt and return the model's raw text.

        Raises:
            ConfigurationError: If the provider has no API key
            AdapterError: If the provider answers with an error status
        """
        if not self.provider.configured:
            raise ConfigurationError(self.supplier_slug, f"{self.provider.slug.upper()}_API_KEY")

        system = SYSTEM_PROMPT.format(
            limit=limit, categories=", ".join(PRODUCT_CATEGORIES)
        )
        url, headers, body = self.provider.build_request(
            self.provider, system, f"Search: {query}"
        )

        self.logger.debug("estimate_request", model=self.provider.model, query=query)

        async with self._get_client() as client:
            response = await client.post(url, headers=headers, json=body)

        if response.status_code >= 400:
            self.logger.warning(
                "estimate_http_error",
                status_code=response.status_code,
                body=response.text[:500],
            )
            raise AdapterError(self.supplier_slug, f"HTTP {response.status_code}")

        try:
            payload = response.json()
        except ValueError as e:
            raise AdapterError(self.supplier_slug, "response is not JSON") from e

        return self.provider.extract_text(payload)

    def _normalize_item(
        self, item: Any, fetched_at: datetime
    ) -> Optional[ProductResult]:
        """Defensively map one model item; None when it has no usable name."""
        if not isinstance(item, dict):
            return None

        name = item.get("productName")
        if not isinstance(name, str) or not name.strip():
            return None

        price = item.get("price")
        if isinstance(price, (int, float)) and not isinstance(price, bool):
            price = PriceNormalizer.clean_price_string(price)
            if price is not None and price < 0:
                price = None
        else:
            price = None

        size_value = item.get("sizeValue")
        if (
            not isinstance(size_value, (int, float))
            or isinstance(size_value, bool)
            or not math.isfinite(size_value)
        ):
            size_value = None
        else:
            size_value = float(size_value)

        in_stock = item.get("inStock")
        if not isinstance(in_stock, bool):
            in_stock = None

        category = item.get("category")
        if category not in PRODUCT_CATEGORIES:
            category = None

        return ProductResult(
            product_name=name.strip(),
            brand=_text_or_none(item.get("brand")),
            price=price,
            currency=_text_or_none(item.get("currency")) or default_settings.DEFAULT_CURRENCY,
            size_value=size_value,
            size_unit=_text_or_none(item.get("sizeUnit")),
            size_label=_text_or_none(item.get("sizeLabel")),
            store_name=_text_or_none(item.get("storeName")) or "Unknown",
            product_url=_text_or_none(item.get("productUrl")) or "",
            sku=_text_or_none(item.get("sku")),
            in_stock=in_stock,
            last_checked_at=fetched_at,
            price_per_unit=PriceNormalizer.price_per_unit(price, size_value),
            category=category,
            source=self.source,
            is_real_price=False,
        )


def _text_or_none(value: Any) -> Optional[str]:
    """Strings pass through, numbers are stringified, anything else is None."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str) and value.strip() and value.strip().lower() != "null":
        return value.strip()
    return None
