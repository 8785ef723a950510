"""Settings for the login probe.

Values are resolved in this order:
- process environment (``APP_URL``, ``KEYCLOAK_USER``, ...)
- `.env` overlaid on `.env.defaults`, both read from the working directory
- literal fallbacks below
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Dict, Optional

DEFAULT_APP_URL = "http://localhost:8080"
DEFAULT_USERNAME = "user666"
DEFAULT_PASSWORD = "secret"
DEFAULT_LOGIN_LABEL = "Logga in med Keycloak"
DEFAULT_LOGOUT_LABEL = "Logga ut"

DEFAULT_TIMEOUT_MS = 30000
DEFAULT_REDIRECT_TIMEOUT_MS = 10000

BROWSER_TYPES = ("chromium", "firefox", "webkit")


@lru_cache(maxsize=8)
def load_defaults(directory: str = ".") -> Dict[str, str]:
    """Key/value defaults from `<directory>/.env.defaults` with `.env` on top.

    Empty when neither file exists (CI passes everything through the
    environment). Cached per directory; the probe is run from the project
    checkout, so an installed package never looks next to its own files.
    """
    base = Path(directory)
    merged: Dict[str, str] = {}
    for name in (".env.defaults", ".env"):
        path = base / name
        if path.exists():
            merged.update(_parse_env_file(path))
    return merged


def get_setting(key: str, fallback: str | None = None) -> str | None:
    """Return the environment value for a key, else its file default, else fallback."""
    value = os.getenv(key)
    if value:
        return value
    return load_defaults(os.getcwd()).get(key, fallback)


def _parse_env_file(env_path: Path) -> Dict[str, str]:
    defaults: Dict[str, str] = {}
    with env_path.open("r", encoding="utf-8") as handle:
        for line in handle:
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            if "=" not in line:
                continue
            key, value = line.split("=", 1)
            value = value.strip()
            # Strip surrounding quotes (single or double)
            if len(value) >= 2 and value[0] in ('"', "'") and value[-1] == value[0]:
                value = value[1:-1]
            defaults[key.strip()] = value
    return defaults


def _as_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"true", "1", "yes"}


def _as_int(key: str, value: str | None, default: int) -> int:
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        raise RuntimeError(f"{key} must be an integer, got '{value}'") from None


@dataclass(frozen=True)
class RunnerOptions:
    """Browser runner configuration shared by every scenario."""

    timeout_ms: int = DEFAULT_TIMEOUT_MS
    headless: bool = True
    viewport_width: int = 1280
    viewport_height: int = 720
    ignore_https_errors: bool = True
    browser_type: str = "chromium"

    def __post_init__(self) -> None:
        if self.browser_type not in BROWSER_TYPES:
            raise RuntimeError(
                f"Unsupported browser '{self.browser_type}' (expected one of {', '.join(BROWSER_TYPES)})"
            )

    @property
    def viewport(self) -> Dict[str, int]:
        return {"width": self.viewport_width, "height": self.viewport_height}

    @classmethod
    def from_env(cls) -> "RunnerOptions":
        return cls(
            timeout_ms=_as_int("PLAYWRIGHT_TIMEOUT_MS", get_setting("PLAYWRIGHT_TIMEOUT_MS"), DEFAULT_TIMEOUT_MS),
            headless=_as_bool(get_setting("PLAYWRIGHT_HEADLESS"), True),
            browser_type=get_setting("PLAYWRIGHT_BROWSER", "chromium"),
        )


@dataclass(frozen=True)
class ProbeSettings:
    """Everything one login probe run needs."""

    base_url: str = DEFAULT_APP_URL
    username: str = DEFAULT_USERNAME
    password: str = DEFAULT_PASSWORD
    login_label: str = DEFAULT_LOGIN_LABEL
    logout_label: str = DEFAULT_LOGOUT_LABEL
    redirect_timeout_ms: int = DEFAULT_REDIRECT_TIMEOUT_MS
    screenshot_dir: Optional[str] = None
    runner: RunnerOptions = field(default_factory=RunnerOptions)

    @property
    def root_url(self) -> str:
        """The address the probe starts from, ``<base_url>/``."""
        return self.base_url + "/"

    def url(self, path: str) -> str:
        return self.base_url + "/" + path.lstrip("/")

    @classmethod
    def from_env(cls) -> "ProbeSettings":
        return cls(
            base_url=get_setting("APP_URL", DEFAULT_APP_URL),
            username=get_setting("KEYCLOAK_USER", DEFAULT_USERNAME),
            password=get_setting("KEYCLOAK_PASS", DEFAULT_PASSWORD),
            login_label=get_setting("PROBE_LOGIN_LABEL", DEFAULT_LOGIN_LABEL),
            logout_label=get_setting("PROBE_LOGOUT_LABEL", DEFAULT_LOGOUT_LABEL),
            redirect_timeout_ms=_as_int(
                "PROBE_REDIRECT_TIMEOUT_MS",
                get_setting("PROBE_REDIRECT_TIMEOUT_MS"),
                DEFAULT_REDIRECT_TIMEOUT_MS,
            ),
            screenshot_dir=get_setting("SCREENSHOT_DIR"),
            runner=RunnerOptions.from_env(),
        )
