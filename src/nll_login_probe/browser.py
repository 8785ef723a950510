"""Thin wrapper around a Playwright page for ergonomic probe steps."""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Callable, Dict

from playwright.async_api import Error as PlaywrightError, Page


@dataclass
class ToolError(Exception):
    """Raised when a browser operation fails."""

    name: str
    payload: Dict[str, Any]
    message: str

    def __str__(self) -> str:  # pragma: no cover - human readable helper
        return f"{self.name} failed ({self.message}) with payload={self.payload}"


class Browser:
    """Convenience wrapper over a Playwright page."""

    def __init__(self, page: Page) -> None:
        self._page = page

    @property
    def page(self) -> Page:
        return self._page

    @property
    def current_url(self) -> str:
        """Live address of the page (never cached; redirects change it)."""
        return self._page.url

    async def goto(self, url: str, wait_until: str = "load") -> Dict[str, Any]:
        """Navigate to URL and return the landing address with status."""
        try:
            response = await self._page.goto(url, wait_until=wait_until)
        except Exception as exc:
            raise ToolError(name="goto", payload={"url": url}, message=str(exc))
        return {"url": self.current_url, "status": response.status if response else None}

    async def click(self, selector: str) -> Dict[str, Any]:
        """Click element."""
        try:
            await self._page.click(selector)
        except Exception as exc:
            raise ToolError(name="click", payload={"selector": selector}, message=str(exc))
        return {"selector": selector, "url": self.current_url}

    async def fill(self, selector: str, value: str, secret: bool = False) -> Dict[str, Any]:
        """Fill input field. Secret values are masked in errors and results."""
        shown = "*" * len(value) if secret else value
        try:
            await self._page.fill(selector, value)
        except Exception as exc:
            raise ToolError(name="fill", payload={"selector": selector, "value": shown}, message=str(exc))
        return {"selector": selector, "value": shown}

    async def wait_for_selector(self, selector: str, timeout: float | None = None) -> None:
        """Wait for an element to be attached and visible.

        Args:
            timeout: Milliseconds; None uses the context default.
        """
        try:
            await self._page.wait_for_selector(selector, timeout=timeout)
        except PlaywrightError as exc:
            raise ToolError(
                name="wait_for_selector",
                payload={"selector": selector, "timeout": timeout},
                message=str(exc),
            )

    async def wait_for_url(self, predicate: Callable[[str], bool], timeout: float) -> str:
        """Wait until the page address satisfies predicate; returns the address."""
        try:
            await self._page.wait_for_url(predicate, timeout=timeout)
        except PlaywrightError as exc:
            raise ToolError(
                name="wait_for_url",
                payload={"url": self.current_url, "timeout": timeout},
                message=str(exc),
            )
        return self.current_url

    async def count(self, selector: str) -> int:
        """Number of elements currently matching selector (no waiting)."""
        try:
            return await self._page.locator(selector).count()
        except Exception as exc:
            raise ToolError(name="count", payload={"selector": selector}, message=str(exc))

    async def first_text(self, selector: str, timeout: float = 1000) -> str | None:
        """Text of the first match, or None when it cannot be read in time."""
        locator = self._page.locator(selector).first
        try:
            text = await locator.text_content(timeout=timeout)
        except PlaywrightError:
            return None
        return text.strip() if text else None

    async def screenshot(self, directory: str, name: str) -> str:
        """Write a full-page PNG to ``<directory>/<name>.png`` and return its path."""
        path = os.path.join(directory, f"{name}.png")
        try:
            os.makedirs(directory, exist_ok=True)
            await self._page.screenshot(path=path, type="png", full_page=True)
        except Exception as exc:
            raise ToolError(name="screenshot", payload={"name": name}, message=str(exc))
        return path
