"""B&Q (diy.com) browser scraper adapter.

diy.com has no public search API, so search result pages are rendered
in the shared Playwright browser and parsed with BeautifulSoup. The site
markup is not stable; every lookup walks a list of selector candidates
and an empty result set is a normal outcome.
"""

import asyncio
import re
from datetime import datetime, timezone
from typing import Iterator, List, Optional
from urllib.parse import quote_plus

from bs4 import BeautifulSoup
from bs4.element import Tag
from playwright.async_api import Page, TimeoutError as PlaywrightTimeout

from supplier_search.config import settings
from supplier_search.adapters.base import BaseScraperAdapter, ProductResult, ProductSource
from supplier_search.utils.browser_manager import get_browser_manager
from supplier_search.utils.normalizer import (
    PriceNormalizer,
    extract_brand,
    normalize_url,
    parse_size,
)

BASE_URL = "https://www.diy.com"

# Tried in order; the first selector that matches any element wins
CARD_SELECTORS = [
    "[data-testid='product-card']",
    ".product-card",
    "[class*='ProductCard']",
    "article[data-product-id]",
]

NAME_SELECTORS = [
    "h3",
    "[data-testid='product-title']",
    "[class*='title']",
    "a[href*='/departments/']",
]

PRICE_SELECTORS = [
    "[data-testid='product-price']",
    "[class*='price']",
    "[class*='Price']",
]

LINK_SELECTOR = "a[href*='/departments/']"

COOKIE_BUTTON_SELECTORS = [
    "button[data-testid='cookie-accept-all']",
    "#onetrust-accept-btn-handler",
    "button:has-text('Accept all')",
]

# diy.com product URLs end in "/<digits>_BQ.prd"
_SKU_PATTERN = re.compile(r"/(\d+_BQ)\.prd")

_BLOCK_MARKERS = [
    "access denied",
    "are you a robot",
    "request unsuccessful. incapsula",
    "verify you are human",
]


class DiyBrowserAdapter(BaseScraperAdapter):
    """diy.com search results scraper via Playwright browser automation."""

    supplier_slug = "diy"
    supplier_name = "B&Q"
    source = ProductSource.SCRAPE

    def __init__(
        self,
        browser_manager=None,
        settle_seconds: Optional[float] = None,
        navigation_timeout_ms: Optional[int] = None,
        **kwargs,
    ):
        super().__init__(browser_manager=browser_manager, **kwargs)
        self.settle_seconds = (
            settings.BROWSER_SETTLE_SECONDS if settle_seconds is None else settle_seconds
        )
        self.navigation_timeout_ms = (
            navigation_timeout_ms or settings.BROWSER_NAVIGATION_TIMEOUT_MS
        )

    def search_url(self, query: str) -> str:
        return f"{BASE_URL}/search?term={quote_plus(query)}"

    async def _search(self, query: str, limit: int) -> List[ProductResult]:
        """Render the search page and parse product cards.

        Cards parsed before a failure are kept; the page is always closed.
        """
        manager = self.browser_manager or get_browser_manager()
        url = self.search_url(query)
        results: List[ProductResult] = []

        try:
            async with manager.page(
                extra_headers={"Accept-Language": "en-GB,en;q=0.9"}
            ) as page:
                self.logger.info("scraping_url", url=url)
                await page.goto(
                    url,
                    wait_until="domcontentloaded",
                    timeout=self.navigation_timeout_ms,
                )
                # No reliable load-complete signal on this site
                await asyncio.sleep(self.settle_seconds)
                await self._dismiss_cookie_banner(page)
                await asyncio.sleep(self.settle_seconds)

                html = await page.content()
                fetched_at = datetime.now(timezone.utc)

                if self._is_blocked(html):
                    self.logger.warning("diy_bot_check_detected", url=url)
                    return results

                for result in self.parse_results_html(html, limit, fetched_at):
                    results.append(result)

        except PlaywrightTimeout as e:
            self.logger.warning("diy_navigation_timeout", url=url, error=str(e))
        except Exception as e:
            self.logger.error("diy_search_failed", url=url, error=str(e), exc_info=True)

        if not results:
            self.logger.info("diy_no_products", query=query)
        return results

    async def _dismiss_cookie_banner(self, page: Page) -> None:
        """Click the consent overlay if present. Never fatal."""
        for selector in COOKIE_BUTTON_SELECTORS:
            try:
                button = await page.query_selector(selector)
                if button:
                    await button.click()
                    await asyncio.sleep(0.5)
                    self.logger.debug("cookie_banner_dismissed", selector=selector)
                    return
            except Exception as e:
                self.logger.debug("cookie_banner_click_failed", selector=selector, error=str(e))

    @staticmethod
    def _is_blocked(html: str) -> bool:
        html_lower = html.lower()
        return any(marker in html_lower for marker in _BLOCK_MARKERS)

    def parse_results_html(
        self, html: str, limit: int, fetched_at: Optional[datetime] = None
    ) -> Iterator[ProductResult]:
        """Yield ProductResults for up to `limit` product cards in the page."""
        fetched_at = fetched_at or datetime.now(timezone.utc)
        soup = BeautifulSoup(html, "html.parser")

        cards: List[Tag] = []
        for selector in CARD_SELECTORS:
            cards = soup.select(selector)
            if cards:
                self.logger.info("cards_found", selector=selector, count=len(cards))
                break

        for index, card in enumerate(cards[:limit]):
            try:
                result = self._parse_card(card, fetched_at)
            except Exception as e:
                self.logger.warning("card_parse_failed", index=index, error=str(e))
                continue
            if result:
                yield result

    def _parse_card(self, card: Tag, fetched_at: datetime) -> Optional[ProductResult]:
        """Parse one product card; None when name or price is missing."""
        name = _first_text(card, NAME_SELECTORS)
        if not name:
            return None

        price_text = _first_text(card, PRICE_SELECTORS)
        price = PriceNormalizer.extract_price_from_text(price_text or "")
        if price is None:
            return None

        link = card.select_one(LINK_SELECTOR)
        product_url = normalize_url(link.get("href") if link else None, BASE_URL)

        sku_match = _SKU_PATTERN.search(product_url)
        size = parse_size(name)

        image_url = None
        img = card.select_one("img")
        if img:
            image_url = img.get("src") or img.get("data-src")
            if image_url and not image_url.startswith("http"):
                image_url = None

        return ProductResult(
            product_name=name,
            brand=extract_brand(name),
            price=price,
            currency=settings.DEFAULT_CURRENCY,
            size_value=size.value,
            size_unit=size.unit,
            size_label=size.label,
            store_name=self.supplier_name,
            product_url=product_url,
            sku=sku_match.group(1) if sku_match else None,
            in_stock=None,
            last_checked_at=fetched_at,
            price_per_unit=PriceNormalizer.price_per_unit(price, size.value),
            image_url=image_url,
            source=self.source,
        )


def _first_text(container: Tag, selectors: List[str]) -> Optional[str]:
    """Text of the first non-empty element matched by any selector."""
    for selector in selectors:
        elem = container.select_one(selector)
        if elem:
            text = elem.get_text(" ", strip=True)
            if text:
                return text
    return None
