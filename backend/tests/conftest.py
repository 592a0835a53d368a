"""Pytest configuration and shared fixtures."""

from decimal import Decimal
from typing import Callable, List, Optional

import httpx
import pytest

from supplier_search.adapters.base import BaseSupplierAdapter, ProductResult, ProductSource
from supplier_search.utils.browser_manager import BrowserManager


# ============================================================================
# RESULT FACTORY
# ============================================================================

def make_result(
    name: str = "Test Product",
    price=Decimal("9.99"),
    source: ProductSource = ProductSource.STRUCTURED_API,
    store_name: str = "Test Store",
    **kwargs,
) -> ProductResult:
    """Build a ProductResult with sensible defaults."""
    if price is not None and not isinstance(price, Decimal):
        price = Decimal(str(price))
    return ProductResult(
        product_name=name,
        price=price,
        store_name=store_name,
        source=source,
        **kwargs,
    )


# ============================================================================
# FAKE ADAPTERS
# ============================================================================

class FakeAdapter(BaseSupplierAdapter):
    """Adapter returning canned results and recording every call."""

    def __init__(
        self,
        slug: str,
        results: Optional[List[ProductResult]] = None,
        error: Optional[Exception] = None,
        fallback_only: bool = False,
        source: ProductSource = ProductSource.STRUCTURED_API,
        configured: bool = True,
        timeout: Optional[float] = None,
    ):
        self.supplier_slug = slug
        self.supplier_name = slug.title()
        self.fallback_only = fallback_only
        self.source = source
        self.adapter_type = "estimate" if fallback_only else "api"
        super().__init__(timeout=timeout)
        self.results = results or []
        self.error = error
        self.configured = configured
        self.calls = []

    def is_configured(self) -> bool:
        return self.configured

    async def _search(self, query: str, limit: int) -> List[ProductResult]:
        self.calls.append((query, limit))
        if self.error:
            raise self.error
        return list(self.results)


class RaisingAdapter(FakeAdapter):
    """Adapter that breaks the contract by raising from search() itself."""

    async def search(self, query: str, limit: int = 10) -> List[ProductResult]:
        self.calls.append((query, limit))
        raise RuntimeError("source exploded")


# ============================================================================
# FAKE PLAYWRIGHT
# ============================================================================

class FakeElement:
    def __init__(self):
        self.clicked = False

    async def click(self):
        self.clicked = True


class FakePage:
    """Stands in for playwright Page with just what the scraper touches."""

    def __init__(self, html: str = "", goto_error: Optional[Exception] = None, cookie_button=None):
        self.html = html
        self.goto_error = goto_error
        self.cookie_button = cookie_button
        self.visited = []
        self.closed = False

    async def goto(self, url, **kwargs):
        self.visited.append((url, kwargs))
        if self.goto_error:
            raise self.goto_error

    async def query_selector(self, selector):
        if self.cookie_button and selector == "button[data-testid='cookie-accept-all']":
            return self.cookie_button
        return None

    async def content(self):
        return self.html

    async def close(self):
        self.closed = True


class FakeContext:
    def __init__(self, page_factory: Callable[[], FakePage]):
        self._page_factory = page_factory
        self.pages: List[FakePage] = []
        self.init_scripts = []
        self.closed = False

    async def add_init_script(self, script):
        self.init_scripts.append(script)

    async def new_page(self):
        page = self._page_factory()
        self.pages.append(page)
        return page

    async def close(self):
        self.closed = True


class FakeBrowser:
    def __init__(self, page_factory: Callable[[], FakePage]):
        self._page_factory = page_factory
        self.contexts: List[FakeContext] = []
        self.context_options = []
        self.closed = False

    async def new_context(self, **kwargs):
        self.context_options.append(kwargs)
        context = FakeContext(self._page_factory)
        self.contexts.append(context)
        return context

    async def close(self):
        self.closed = True


class FakeChromium:
    def __init__(self, page_factory):
        self._page_factory = page_factory
        self.launches = []
        self.browser: Optional[FakeBrowser] = None

    async def launch(self, **kwargs):
        self.launches.append(kwargs)
        self.browser = FakeBrowser(self._page_factory)
        return self.browser


class FakePlaywright:
    def __init__(self, page_factory):
        self.chromium = FakeChromium(page_factory)
        self.stopped = False
        self.stops = 0

    async def stop(self):
        self.stopped = True
        self.stops += 1


class FakePlaywrightFactory:
    """Replaces async_playwright(): calling it returns an object with start()."""

    def __init__(self, page_factory: Callable[[], FakePage] = FakePage):
        self.playwright = FakePlaywright(page_factory)
        self.starts = 0

    def __call__(self):
        return self

    async def start(self):
        self.starts += 1
        return self.playwright


# ============================================================================
# FIXTURES
# ============================================================================

@pytest.fixture
def playwright_factory():
    return FakePlaywrightFactory()


@pytest.fixture
def browser_manager(playwright_factory):
    return BrowserManager(headless=True, playwright_factory=playwright_factory)


@pytest.fixture
def mock_http():
    """Build an httpx.AsyncClient backed by a handler; records requests."""
    def _build(handler):
        requests = []

        def _record(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return handler(request)

        client = httpx.AsyncClient(transport=httpx.MockTransport(_record))
        return client, requests

    return _build
