"""
Error mapping in the page wrapper and the login flow, with stub pages.
"""
import pytest
from playwright.async_api import Error as PlaywrightError

from nll_login_probe.browser import Browser, ToolError
from nll_login_probe.config import ProbeSettings
from nll_login_probe.probe import LoginFlowProbe, MarkerNotFound, NavigationMismatch

pytestmark = pytest.mark.asyncio


class _BrokenLocator:
    @property
    def first(self):
        return self

    async def text_content(self, timeout=None):
        raise PlaywrightError("Execution context was destroyed, most likely because of a navigation")

    async def count(self):
        raise PlaywrightError("Execution context was destroyed, most likely because of a navigation")


class _StubPage:
    url = "http://localhost:8080/login"

    def __init__(self):
        self.screenshots = []

    def locator(self, selector):
        return _BrokenLocator()

    async def screenshot(self, path, type, full_page):
        self.screenshots.append(path)


class _StubSteps:
    """Records screenshot requests; every marker count fails mid-navigation."""

    current_url = "http://localhost:8080/prescriptions"

    def __init__(self):
        self.captured = []

    async def count(self, selector):
        raise ToolError("count", {"selector": selector}, "Execution context was destroyed")

    async def screenshot(self, directory, name):
        self.captured.append(name)
        raise ToolError("screenshot", {"name": name}, "disk full")


async def test_first_text_is_none_when_page_navigates_away():
    browser = Browser(_StubPage())

    assert await browser.first_text("#input-error") is None


async def test_count_errors_become_tool_errors():
    browser = Browser(_StubPage())

    with pytest.raises(ToolError) as excinfo:
        await browser.count("text=Logga ut")

    assert excinfo.value.name == "count"
    assert "Execution context was destroyed" in excinfo.value.message


async def test_screenshot_into_uncreatable_dir_is_a_tool_error(tmp_path):
    blocker = tmp_path / "shots"
    blocker.write_text("not a directory", encoding="utf-8")
    page = _StubPage()

    with pytest.raises(ToolError) as excinfo:
        await Browser(page).screenshot(str(blocker / "sub"), "open-root-failure")

    assert excinfo.value.name == "screenshot"
    assert page.screenshots == []


async def test_marker_count_error_is_marker_not_found():
    flow = LoginFlowProbe(_StubSteps(), ProbeSettings())

    with pytest.raises(MarkerNotFound) as excinfo:
        await flow.assert_logged_in()

    assert excinfo.value.step == "post-login-marker"
    assert "Execution context was destroyed" in excinfo.value.message
    assert isinstance(excinfo.value.__cause__, ToolError)


async def test_failed_screenshot_does_not_replace_failure(monkeypatch, tmp_path):
    steps = _StubSteps()
    flow = LoginFlowProbe(steps, ProbeSettings(screenshot_dir=str(tmp_path)))

    async def _wrong_page():
        raise NavigationMismatch("open-root", "http://localhost:8080/login", "landed on the login page")

    monkeypatch.setattr(flow, "open_root", _wrong_page)

    with pytest.raises(NavigationMismatch) as excinfo:
        await flow.run()

    assert excinfo.value.step == "open-root"
    assert steps.captured == ["open-root-failure"]
