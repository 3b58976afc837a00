"""Playwright browser automation with stealth configuration for pharmacy scans."""

import asyncio
from contextlib import asynccontextmanager
from typing import Any, Optional

from playwright.async_api import (
    Browser,
    BrowserContext,
    Page,
    Playwright,
    async_playwright,
)

from ..config import ScanTarget, ScannerSettings, get_settings
from ..utils.logging import get_structured_logger

logger = get_structured_logger(__name__)

LAUNCH_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-blink-features=AutomationControlled",
    "--disable-features=IsolateOrigins,site-per-process",
    "--disable-infobars",
    "--window-size=1920,1080",
    "--start-maximized",
    "--disable-gpu",
    "--no-first-run",
    "--no-default-browser-check",
]

STEALTH_SCRIPT = """
    // Remove webdriver property
    Object.defineProperty(navigator, 'webdriver', {
        get: () => undefined,
    });

    // Mock plugins
    Object.defineProperty(navigator, 'plugins', {
        get: () => [1, 2, 3, 4, 5],
    });

    // Mock languages
    Object.defineProperty(navigator, 'languages', {
        get: () => ['sk-SK', 'sk', 'en-US', 'en'],
    });

    // Mock chrome object
    window.chrome = {
        runtime: {},
    };
"""


class StealthBrowser:
    """Shared Chromium instance handing out one isolated context per scan."""

    def __init__(self, settings: Optional[ScannerSettings] = None):
        self.settings = settings or get_settings().scanner
        self.playwright: Optional[Playwright] = None
        self.browser: Optional[Browser] = None
        self._browser_lock = asyncio.Lock()

    async def setup(self) -> None:
        """Initialize Playwright and launch Chromium."""
        if self.browser:
            return

        async with self._browser_lock:
            if self.browser:
                return

            logger.info(
                "Initializing Playwright browser", headless=self.settings.headless
            )
            self.playwright = await async_playwright().start()
            self.browser = await self.playwright.chromium.launch(
                headless=self.settings.headless,
                args=LAUNCH_ARGS,
            )
            logger.info("Playwright browser initialized successfully")

    async def cleanup(self) -> None:
        """Close the browser and stop Playwright."""
        async with self._browser_lock:
            if self.browser:
                await self.browser.close()
                self.browser = None

            if self.playwright:
                await self.playwright.stop()
                self.playwright = None

            logger.info("Playwright browser cleaned up")

    def context_options(self, target: Optional[ScanTarget] = None) -> dict[str, Any]:
        """Options for ``Browser.new_context`` for one scan of ``target``."""
        options: dict[str, Any] = {
            "viewport": {
                "width": self.settings.viewport_width,
                "height": self.settings.viewport_height,
            },
            "user_agent": self.settings.user_agent,
            "locale": self.settings.locale,
            "timezone_id": self.settings.timezone_id,
            "extra_http_headers": {
                "Accept-Language": self.settings.accept_language,
                "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,image/webp,*/*;q=0.8",
                "Accept-Encoding": "gzip, deflate, br",
                "DNT": "1",
                "Connection": "keep-alive",
                "Upgrade-Insecure-Requests": "1",
                "Sec-Fetch-Dest": "document",
                "Sec-Fetch-Mode": "navigate",
                "Sec-Fetch-Site": "none",
                "Sec-Fetch-User": "?1",
            },
            "java_script_enabled": True,
        }

        geolocation = target.geolocation if target else None
        if geolocation and geolocation.is_usable:
            options["geolocation"] = {
                "latitude": geolocation.latitude,
                "longitude": geolocation.longitude,
            }
            options["permissions"] = ["geolocation"]

        return options

    @asynccontextmanager
    async def create_context(self, target: Optional[ScanTarget] = None):
        """Create a fresh, isolated browser context; closed on exit."""
        if not self.browser:
            await self.setup()

        context: BrowserContext = await self.browser.new_context(
            **self.context_options(target)
        )
        await context.add_init_script(STEALTH_SCRIPT)

        try:
            yield context
        finally:
            try:
                await context.close()
            except Exception as e:
                logger.debug("Failed to close browser context", error=str(e))

    @asynccontextmanager
    async def create_page(self, target: Optional[ScanTarget] = None):
        """Open a page in its own context; yields ``(context, page)``."""
        async with self.create_context(target) as context:
            page: Page = await context.new_page()
            try:
                yield context, page
            finally:
                try:
                    await page.close()
                except Exception as e:
                    logger.debug("Failed to close page", error=str(e))


# Global browser instance
_browser: Optional[StealthBrowser] = None


async def get_browser() -> StealthBrowser:
    """Get or create the global browser."""
    global _browser

    if _browser is None:
        _browser = StealthBrowser()
        await _browser.setup()

    return _browser


async def cleanup_browser() -> None:
    """Clean up the global browser."""
    global _browser

    if _browser:
        await _browser.cleanup()
        _browser = None
