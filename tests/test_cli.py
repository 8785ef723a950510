"""
Command line handling with the browser run replaced by a stub.
"""
import pytest
from playwright.async_api import Error as PlaywrightError

from nll_login_probe import cli
from nll_login_probe import config
from nll_login_probe.browser import ToolError
from nll_login_probe.probe import MarkerNotFound, ProbeResult


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch, tmp_path):
    for key in ("APP_URL", "KEYCLOAK_USER", "KEYCLOAK_PASS", "PLAYWRIGHT_HEADLESS", "PLAYWRIGHT_TIMEOUT_MS", "SCREENSHOT_DIR"):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    config.load_defaults.cache_clear()
    yield
    config.load_defaults.cache_clear()


@pytest.fixture
def recorded_runs(monkeypatch):
    """Replace the browser run; records (settings, check_logout) per call."""
    runs = []

    async def _fake_run(settings, check_logout=False):
        runs.append((settings, check_logout))
        return ProbeResult(final_url=settings.base_url + "/prescriptions", marker="Logga ut", match_count=1, elapsed=0.1)

    monkeypatch.setattr(cli, "run_login_probe", _fake_run)
    return runs


def test_probe_success_exits_zero(recorded_runs):
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["probe"])

    assert excinfo.value.code == 0
    settings, check_logout = recorded_runs[0]
    assert settings.base_url == "http://localhost:8080"
    assert settings.username == "user666"
    assert check_logout is False


def test_probe_options_override_environment(recorded_runs, monkeypatch):
    monkeypatch.setenv("APP_URL", "http://from-env:8080")

    with pytest.raises(SystemExit) as excinfo:
        cli.main([
            "probe",
            "--base-url", "http://cli:8080",
            "--username", "patient1",
            "--password", "pw",
            "--headed",
            "--check-logout",
            "--screenshot-dir", "shots",
        ])

    assert excinfo.value.code == 0
    settings, check_logout = recorded_runs[0]
    assert settings.base_url == "http://cli:8080"
    assert settings.username == "patient1"
    assert settings.password == "pw"
    assert settings.screenshot_dir == "shots"
    assert settings.runner.headless is False
    assert settings.runner.viewport == {"width": 1280, "height": 720}
    assert check_logout is True


def test_probe_failure_exits_one(monkeypatch):
    async def _failing_run(settings, check_logout=False):
        raise MarkerNotFound("post-login-marker", settings.base_url + "/", "no marker")

    monkeypatch.setattr(cli, "run_login_probe", _failing_run)

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["probe"])

    assert excinfo.value.code == 1


@pytest.mark.parametrize("error", [
    PlaywrightError("Executable doesn't exist at /ms-playwright/chromium/chrome"),
    ToolError("screenshot", {"name": "open-root-failure"}, "Target page, context or browser has been closed"),
])
def test_browser_error_exits_one(monkeypatch, caplog, error):
    async def _broken_run(settings, check_logout=False):
        raise error

    monkeypatch.setattr(cli, "run_login_probe", _broken_run)

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["probe"])

    assert excinfo.value.code == 1
    assert any(record.levelname == "ERROR" and "Browser error" in record.getMessage() for record in caplog.records)


def test_bad_configuration_exits_two(monkeypatch, recorded_runs):
    monkeypatch.setenv("PLAYWRIGHT_TIMEOUT_MS", "later")

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["probe"])

    assert excinfo.value.code == 2
    assert recorded_runs == []


def test_install_theme(tmp_path):
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["install-theme", str(tmp_path / "nll-light")])

    assert excinfo.value.code == 0
    assert (tmp_path / "nll-light" / "login" / "resources" / "js" / "trim-inputs.js").exists()


def test_command_is_required():
    with pytest.raises(SystemExit) as excinfo:
        cli.main([])

    assert excinfo.value.code == 2
