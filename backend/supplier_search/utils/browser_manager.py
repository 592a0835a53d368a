"""Playwright browser lifecycle manager with anti-detection.

One headless Chromium process is shared by every scraper call. It is
launched lazily on the first acquire, reference counted while searches
hold it, and torn down only through stop(), which the application
shutdown sequence calls.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable, Dict, Optional

import structlog
from playwright.async_api import async_playwright, Browser, Page, Playwright

from supplier_search.config import settings
from supplier_search.utils.user_agents import get_random_user_agent

logger = structlog.get_logger(__name__)


LAUNCH_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-blink-features=AutomationControlled",
]


class BrowserManager:
    """Manages a shared Playwright browser behind an acquire/release API.

    Each search gets its own context and page via page(), so requests
    never share cookies or tabs, while the browser process itself is
    reused across calls.
    """

    def __init__(
        self,
        headless: bool = True,
        playwright_factory: Callable = async_playwright,
    ):
        self._headless = headless
        self._playwright_factory = playwright_factory
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._lock = asyncio.Lock()
        self._refs = 0

    @property
    def is_running(self) -> bool:
        return self._browser is not None

    @property
    def active_references(self) -> int:
        return self._refs

    async def acquire(self) -> Browser:
        """Return the shared browser, launching it on first use."""
        async with self._lock:
            if self._browser is None:
                playwright = await self._playwright_factory().start()
                try:
                    browser = await playwright.chromium.launch(
                        headless=self._headless,
                        args=LAUNCH_ARGS,
                    )
                except Exception:
                    # The driver must not outlive a failed launch
                    await playwright.stop()
                    raise
                self._playwright = playwright
                self._browser = browser
                logger.info("browser_started", headless=self._headless)
            self._refs += 1
            return self._browser

    async def release(self) -> None:
        """Drop one reference. The browser stays up for later searches."""
        async with self._lock:
            if self._refs > 0:
                self._refs -= 1

    @asynccontextmanager
    async def page(
        self, extra_headers: Optional[Dict[str, str]] = None
    ) -> AsyncIterator[Page]:
        """Open an isolated context and page, closing both on exit."""
        browser = await self.acquire()
        context = None
        page = None
        try:
            context = await browser.new_context(
                user_agent=get_random_user_agent(),
                viewport={"width": 1920, "height": 1080},
                locale="en-GB",
                timezone_id="Europe/London",
                extra_http_headers=extra_headers or {},
            )
            await context.add_init_script(STEALTH_JS)
            page = await context.new_page()
            yield page
        finally:
            if page is not None:
                try:
                    await page.close()
                except Exception as e:
                    logger.warning("page_close_failed", error=str(e))
            if context is not None:
                try:
                    await context.close()
                except Exception as e:
                    logger.warning("context_close_failed", error=str(e))
            await self.release()

    async def stop(self) -> None:
        """Close the browser and Playwright driver. Safe to call twice."""
        async with self._lock:
            if self._refs:
                logger.warning("browser_stopped_with_active_pages", refs=self._refs)
            if self._browser:
                await self._browser.close()
                self._browser = None
            if self._playwright:
                await self._playwright.stop()
                self._playwright = None
            self._refs = 0
            logger.info("browser_stopped")


# Minimal stealth JS to mask automation signals
STEALTH_JS = """
Object.defineProperty(navigator, 'webdriver', { get: () => undefined });
Object.defineProperty(navigator, 'languages', { get: () => ['en-GB', 'en'] });
Object.defineProperty(navigator, 'plugins', { get: () => [1, 2, 3, 4, 5] });
window.chrome = { runtime: {} };
"""


# Singleton instance
_browser_manager: Optional[BrowserManager] = None


def get_browser_manager() -> BrowserManager:
    """Get the global BrowserManager singleton."""
    global _browser_manager
    if _browser_manager is None:
        _browser_manager = BrowserManager(headless=settings.BROWSER_HEADLESS)
    return _browser_manager
