import sys
import threading
from pathlib import Path

import pytest
import pytest_asyncio
from werkzeug.serving import make_server

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from nll_login_probe.browser import Browser
from nll_login_probe.config import ProbeSettings, RunnerOptions
from nll_login_probe.playwright_client import PlaywrightClient
from ui_tests.mock_keycloak import create_mock_provider_app, create_mock_web_app, reset_mock_state


class MockServer:
    """Serve a WSGI app on a free local port from a background thread."""

    def __init__(self, app, host='127.0.0.1'):
        self.host = host
        self.app = app
        self.server = make_server(self.host, 0, self.app, threaded=True)
        self.thread = None

    def start(self):
        self.thread = threading.Thread(target=self.server.serve_forever, daemon=True)
        self.thread.start()

    def stop(self):
        self.server.shutdown()
        if self.thread:
            self.thread.join(timeout=5)

    @property
    def url(self):
        return f"http://{self.host}:{self.server.server_port}"


class KeycloakStack:
    """Running mock web app plus mock identity provider."""

    def __init__(self):
        self.provider_app = create_mock_provider_app()
        self.web_app = create_mock_web_app()
        self.provider = MockServer(self.provider_app)
        self.web = MockServer(self.web_app)
        self.web_app.config['PROVIDER_URL'] = self.provider.url

    @property
    def app_url(self):
        return self.web.url

    def start(self):
        self.provider.start()
        self.web.start()

    def stop(self):
        self.web.stop()
        self.provider.stop()


@pytest.fixture(scope='function')
def keycloak_stack():
    """Fixture that provides the mock application and identity provider."""
    reset_mock_state()
    stack = KeycloakStack()
    stack.start()

    yield stack

    stack.stop()
    reset_mock_state()


@pytest.fixture()
def runner_options():
    """Runner options with short timeouts so failing steps fail fast."""
    return RunnerOptions(timeout_ms=3000)


@pytest.fixture()
def probe_settings(keycloak_stack, runner_options):
    """Probe settings pointing at the mock stack."""
    return ProbeSettings(
        base_url=keycloak_stack.app_url,
        redirect_timeout_ms=3000,
        runner=runner_options,
    )


@pytest_asyncio.fixture()
async def playwright_client(runner_options):
    """Create a Playwright client instance."""
    async with PlaywrightClient(runner_options) as client:
        yield client


@pytest_asyncio.fixture()
async def browser(playwright_client):
    """Create a Browser instance with the Playwright page."""
    return Browser(playwright_client.page)
