"""Tests for the diy.com browser scraper."""

from decimal import Decimal

import pytest

from conftest import FakeElement, FakePage, FakePlaywrightFactory
from supplier_search.adapters.base import ProductSource
from supplier_search.adapters.diy_browser import DiyBrowserAdapter
from supplier_search.utils.browser_manager import BrowserManager


SEARCH_PAGE = """
<html><body>
<div data-testid="product-card">
  <a href="/departments/unibond-no-more-nails-original-365ml/1234567_BQ.prd">
    <img src="https://media.diy.com/is/image/Kingfisher/1234567" />
  </a>
  <h3>UniBond No More Nails Original 365ml</h3>
  <div data-testid="product-price">£7.30</div>
</div>
<div data-testid="product-card">
  <h3>Out of range item</h3>
</div>
<div data-testid="product-card">
  <div data-testid="product-price">£2.00</div>
</div>
<div data-testid="product-card">
  <a href="/departments/goodhome-shed-8x6/7654321_BQ.prd">GoodHome shed</a>
  <h3>GoodHome Pent Shed 8x6</h3>
  <span class="product-price">Now £1,012.50</span>
  <img data-src="/relative/image.jpg" />
</div>
</body></html>
"""


@pytest.fixture
def adapter():
    return DiyBrowserAdapter(browser_manager=object(), settle_seconds=0)


# ============================================================================
# TESTS: HTML PARSING
# ============================================================================

class TestParseResultsHtml:
    """Tests for DiyBrowserAdapter.parse_results_html."""

    def test_parses_valid_cards_and_skips_incomplete(self, adapter):
        results = list(adapter.parse_results_html(SEARCH_PAGE, limit=10))

        assert [r.product_name for r in results] == [
            "UniBond No More Nails Original 365ml",
            "GoodHome Pent Shed 8x6",
        ]

    def test_card_fields(self, adapter):
        first, second = adapter.parse_results_html(SEARCH_PAGE, limit=10)

        assert first.price == Decimal("7.30")
        assert first.store_name == "B&Q"
        assert first.brand == "UniBond"
        assert first.sku == "1234567_BQ"
        assert first.size_label == "365ml"
        assert first.product_url == (
            "https://www.diy.com/departments/unibond-no-more-nails-original-365ml/1234567_BQ.prd"
        )
        assert first.image_url == "https://media.diy.com/is/image/Kingfisher/1234567"
        assert first.source == ProductSource.SCRAPE
        assert first.is_real_price is True

        assert second.price == Decimal("1012.50")
        assert second.sku == "7654321_BQ"
        assert second.brand == "GoodHome"
        assert second.image_url is None

    def test_limit_counts_cards(self, adapter):
        results = list(adapter.parse_results_html(SEARCH_PAGE, limit=1))

        assert len(results) == 1

    def test_falls_back_to_later_card_selector(self, adapter):
        html = """
        <article data-product-id="1">
          <a href="/departments/x/99_BQ.prd">Stanley hammer</a>
          <p class="priceNow">£12</p>
        </article>
        """

        results = list(adapter.parse_results_html(html, limit=5))

        assert len(results) == 1
        assert results[0].product_name == "Stanley hammer"
        assert results[0].price == Decimal("12")

    def test_page_without_cards(self, adapter):
        assert list(adapter.parse_results_html("<html><body>No results</body></html>", 5)) == []

    def test_search_url_encodes_query(self, adapter):
        assert adapter.search_url("no more nails") == "https://www.diy.com/search?term=no+more+nails"


# ============================================================================
# TESTS: BROWSER FLOW
# ============================================================================

class TestDiySearch:
    """Tests for the full scrape through a BrowserManager."""

    async def test_search_returns_parsed_cards(self):
        page = FakePage(html=SEARCH_PAGE)
        factory = FakePlaywrightFactory(page_factory=lambda: page)
        manager = BrowserManager(playwright_factory=factory)
        adapter = DiyBrowserAdapter(browser_manager=manager, settle_seconds=0)

        results = await adapter.search("no more nails", limit=5)

        assert len(results) == 2
        url, options = page.visited[0]
        assert url == "https://www.diy.com/search?term=no+more+nails"
        assert options["wait_until"] == "domcontentloaded"
        assert page.closed is True
        assert manager.active_references == 0

    async def test_navigation_failure_closes_page(self):
        page = FakePage(goto_error=RuntimeError("net::ERR_CONNECTION_RESET"))
        factory = FakePlaywrightFactory(page_factory=lambda: page)
        manager = BrowserManager(playwright_factory=factory)
        adapter = DiyBrowserAdapter(browser_manager=manager, settle_seconds=0)

        results = await adapter.search("no more nails")

        assert results == []
        assert page.closed is True
        assert factory.playwright.chromium.browser.contexts[0].closed is True
        assert manager.active_references == 0

    async def test_cookie_banner_clicked(self):
        button = FakeElement()
        page = FakePage(html=SEARCH_PAGE, cookie_button=button)
        factory = FakePlaywrightFactory(page_factory=lambda: page)
        manager = BrowserManager(playwright_factory=factory)
        adapter = DiyBrowserAdapter(browser_manager=manager, settle_seconds=0)

        await adapter.search("no more nails")

        assert button.clicked is True

    async def test_bot_check_page_returns_empty(self):
        page = FakePage(html="<html><body>Access Denied</body></html>")
        factory = FakePlaywrightFactory(page_factory=lambda: page)
        manager = BrowserManager(playwright_factory=factory)
        adapter = DiyBrowserAdapter(browser_manager=manager, settle_seconds=0)

        assert await adapter.search("no more nails") == []
        assert page.closed is True

    async def test_browser_reused_across_searches(self):
        factory = FakePlaywrightFactory(page_factory=lambda: FakePage(html=SEARCH_PAGE))
        manager = BrowserManager(playwright_factory=factory)
        adapter = DiyBrowserAdapter(browser_manager=manager, settle_seconds=0)

        await adapter.search("nails")
        await adapter.search("screws")

        assert factory.starts == 1
        assert len(factory.playwright.chromium.launches) == 1
