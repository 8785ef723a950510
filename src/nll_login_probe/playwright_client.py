"""
Playwright Client
=================

Launches Playwright in-process with the runner options applied to the
default browser context:

- default action timeout (30 s)
- headless execution
- fixed 1280x720 viewport
- TLS certificate errors ignored (local Keycloak runs with self-signed certs)

Usage:
    from nll_login_probe.playwright_client import PlaywrightClient

    async with PlaywrightClient(RunnerOptions()) as client:
        await client.page.goto("http://localhost:8080/")
"""
from __future__ import annotations

import logging
from typing import Optional

from playwright.async_api import async_playwright, Browser, BrowserContext, Page, Playwright

from nll_login_probe.config import RunnerOptions

logger = logging.getLogger(__name__)


class PlaywrightClient:
    """
    Owns the Playwright driver, one browser, its default context and page.

    Example:
        async with PlaywrightClient() as client:
            page = client.page
            await page.goto("https://example.com")
    """

    def __init__(self, options: Optional[RunnerOptions] = None):
        self.options = options or RunnerOptions()

        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._context: Optional[BrowserContext] = None
        self._page: Optional[Page] = None

    async def __aenter__(self):
        """Async context manager entry."""
        try:
            await self.connect()
        except BaseException:
            await self.close()
            raise
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()

    async def connect(self):
        """Launch the configured browser engine and open the default page."""
        self._playwright = await async_playwright().start()

        if self.options.browser_type == 'firefox':
            launcher = self._playwright.firefox
        elif self.options.browser_type == 'webkit':
            launcher = self._playwright.webkit
        else:
            launcher = self._playwright.chromium
        self._browser = await launcher.launch(headless=self.options.headless)
        logger.debug(
            "Launched %s (headless=%s)", self.options.browser_type, self.options.headless
        )

        self._context = await self.new_context()
        self._page = await self._context.new_page()

    async def new_context(self) -> BrowserContext:
        """Create a browser context with the runner options applied."""
        if not self._browser:
            raise RuntimeError("Client not connected. Use 'async with' or call connect()")

        context_options = {
            "viewport": self.options.viewport,
            "ignore_https_errors": self.options.ignore_https_errors,
        }
        context = await self._browser.new_context(**context_options)
        context.set_default_timeout(self.options.timeout_ms)
        return context

    async def close(self):
        """Close all connections and cleanup resources."""
        if self._page:
            await self._page.close()
            self._page = None

        if self._context:
            await self._context.close()
            self._context = None

        if self._browser:
            await self._browser.close()
            self._browser = None

        if self._playwright:
            await self._playwright.stop()
            self._playwright = None

    @property
    def page(self) -> Page:
        """Get the default page."""
        if not self._page:
            raise RuntimeError("Client not connected or page not created")
        return self._page

