"""Federated login probe.

Drives one login through the identity provider and checks that the
application shows an authenticated page afterwards:

1. open ``<base_url>/`` and require the address to stay exactly there
2. click the login trigger (by visible label)
3. wait for the provider's username field
4. fill username and password, submit
5. wait (bounded) until the address starts with ``base_url`` again
6. require a logout label or the username on the page

Every failure is terminal; nothing is retried.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import anyio

from nll_login_probe.browser import Browser, ToolError
from nll_login_probe.config import ProbeSettings
from nll_login_probe.playwright_client import PlaywrightClient

logger = logging.getLogger(__name__)

USERNAME_SELECTOR = 'input[name="username"], input#username'
PASSWORD_SELECTOR = 'input[name="password"], input#password'
SUBMIT_SELECTOR = 'button[type="submit"]'
# Keycloak renders login errors in one of these depending on theme version
PROVIDER_ERROR_SELECTOR = "#input-error, .kc-feedback-text, .alert-error"


class ProbeFailure(Exception):
    """A probe step did not reach its expected state."""

    kind = "failure"

    def __init__(self, step: str, url: str, message: str) -> None:
        super().__init__(message)
        self.step = step
        self.url = url
        self.message = message

    def __str__(self) -> str:
        return f"[{self.kind}] {self.step}: {self.message} (at {self.url})"


class NavigationMismatch(ProbeFailure):
    kind = "navigation-mismatch"


class ElementTimeout(ProbeFailure):
    kind = "element-timeout"


class RedirectTimeout(ProbeFailure):
    kind = "redirect-timeout"


class MarkerNotFound(ProbeFailure, AssertionError):
    kind = "marker-not-found"


@dataclass(frozen=True)
class ProbeResult:
    final_url: str
    marker: str
    match_count: int
    elapsed: float
    logged_out: bool = False


def _text_selector(label: str) -> str:
    return f"text={label}"


class LoginFlowProbe:
    """Runs the login scenario on an already open page."""

    def __init__(self, browser: Browser, settings: ProbeSettings) -> None:
        self.browser = browser
        self.settings = settings

    async def run(self, check_logout: bool = False) -> ProbeResult:
        started = anyio.current_time()
        try:
            await self.open_root()
            await self.start_login()
            await self.wait_for_login_form()
            await self.submit_credentials()
            final_url = await self.wait_for_return()
            marker, count = await self.assert_logged_in()
            logged_out = False
            if check_logout:
                await self.logout()
                logged_out = True
        except ProbeFailure as failure:
            logger.error("Login probe failed: %s", failure)
            await self._capture(failure.step)
            raise

        elapsed = anyio.current_time() - started
        logger.info("Login probe passed in %.2fs (marker '%s' x%d)", elapsed, marker, count)
        return ProbeResult(
            final_url=final_url,
            marker=marker,
            match_count=count,
            elapsed=elapsed,
            logged_out=logged_out,
        )

    async def open_root(self) -> None:
        expected = self.settings.root_url
        logger.info("Opening %s", expected)
        try:
            await self.browser.goto(expected)
        except ToolError as exc:
            raise NavigationMismatch("open-root", self.browser.current_url, exc.message) from exc

        actual = self.browser.current_url
        if actual != expected:
            raise NavigationMismatch(
                "open-root", actual, f"expected address '{expected}', landed on '{actual}'"
            )

    async def start_login(self) -> None:
        label = self.settings.login_label
        logger.info("Clicking login trigger '%s'", label)
        try:
            await self.browser.click(_text_selector(label))
        except ToolError as exc:
            raise ElementTimeout(
                "start-login", self.browser.current_url, f"login trigger '{label}' not found: {exc.message}"
            ) from exc

    async def wait_for_login_form(self) -> None:
        try:
            await self.browser.wait_for_selector(USERNAME_SELECTOR)
        except ToolError as exc:
            raise ElementTimeout(
                "login-form", self.browser.current_url, f"username field did not appear: {exc.message}"
            ) from exc
        logger.info("Identity provider login form at %s", self.browser.current_url)

    async def submit_credentials(self) -> None:
        username = self.settings.username
        logger.info("Submitting credentials for %s/%s", username, "*" * len(self.settings.password))
        try:
            await self.browser.fill(USERNAME_SELECTOR, username)
            await self.browser.fill(PASSWORD_SELECTOR, self.settings.password, secret=True)
            await self.browser.click(SUBMIT_SELECTOR)
        except ToolError as exc:
            raise ElementTimeout("submit-credentials", self.browser.current_url, exc.message) from exc

    async def wait_for_return(self) -> str:
        base_url = self.settings.base_url
        timeout = self.settings.redirect_timeout_ms
        try:
            url = await self.browser.wait_for_url(lambda url: url.startswith(base_url), timeout=timeout)
        except ToolError as exc:
            message = f"address did not return to {base_url} within {timeout}ms"
            provider_error = await self.browser.first_text(PROVIDER_ERROR_SELECTOR)
            if provider_error:
                message += f"; provider says: {provider_error}"
            raise RedirectTimeout("return-to-app", self.browser.current_url, message) from exc
        logger.info("Back on application at %s", url)
        return url

    async def assert_logged_in(self) -> tuple[str, int]:
        """Return the marker found and its match count."""
        for marker in (self.settings.logout_label, self.settings.username):
            try:
                count = await self.browser.count(_text_selector(marker))
            except ToolError as exc:
                raise MarkerNotFound(
                    "post-login-marker", self.browser.current_url, f"could not count '{marker}': {exc.message}"
                ) from exc
            logger.debug("Marker '%s' matched %d element(s)", marker, count)
            if count > 0:
                return marker, count
        raise MarkerNotFound(
            "post-login-marker",
            self.browser.current_url,
            f"neither '{self.settings.logout_label}' nor '{self.settings.username}' is on the page",
        )

    async def logout(self) -> str:
        """Use the logout control and wait for the application's login page."""
        label = self.settings.logout_label
        login_url = self.settings.url("login")
        logger.info("Logging out via '%s'", label)
        try:
            await self.browser.click(_text_selector(label))
        except ToolError as exc:
            raise ElementTimeout("logout", self.browser.current_url, exc.message) from exc
        try:
            return await self.browser.wait_for_url(
                lambda url: url.startswith(login_url), timeout=self.settings.redirect_timeout_ms
            )
        except ToolError as exc:
            raise RedirectTimeout(
                "logout", self.browser.current_url, f"address did not reach {login_url} after logout"
            ) from exc

    async def _capture(self, step: str) -> Optional[str]:
        directory = self.settings.screenshot_dir
        if not directory:
            return None
        try:
            path = await self.browser.screenshot(directory, f"{step}-failure")
        except ToolError as exc:
            logger.warning("Could not save failure screenshot: %s", exc)
            return None
        logger.info("Saved failure screenshot to %s", path)
        return path


async def run_login_probe(settings: ProbeSettings, check_logout: bool = False) -> ProbeResult:
    """Open a browser with the runner options and run the probe once."""
    async with PlaywrightClient(settings.runner) as client:
        probe = LoginFlowProbe(Browser(client.page), settings)
        return await probe.run(check_logout=check_logout)
