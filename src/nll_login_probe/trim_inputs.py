"""Credential trimming script for the Keycloak login theme.

The script itself runs in the browser on the provider's login page
(``resources/js/trim-inputs.js``). This module locates the packaged copy and
installs it into a Keycloak theme directory::

    <theme>/login/resources/js/trim-inputs.js
    <theme>/login/theme.properties   (scripts=... js/trim-inputs.js)
"""
from __future__ import annotations

import logging
import shutil
from pathlib import Path

logger = logging.getLogger(__name__)

SCRIPT_NAME = "trim-inputs.js"
THEME_SCRIPT_ENTRY = f"js/{SCRIPT_NAME}"


def trim_script_path() -> Path:
    return Path(__file__).resolve().parent / "resources" / "js" / SCRIPT_NAME


def trim_script_source() -> str:
    return trim_script_path().read_text(encoding="utf-8")


def install_theme_asset(theme_dir: str | Path) -> Path:
    """Copy the script into a login theme and register it in theme.properties.

    Safe to run repeatedly: the script is overwritten and the
    ``scripts`` entry is only added once.
    """
    login_dir = Path(theme_dir) / "login"
    target = login_dir / "resources" / "js" / SCRIPT_NAME
    target.parent.mkdir(parents=True, exist_ok=True)
    shutil.copyfile(trim_script_path(), target)
    logger.info("Installed %s", target)

    _register_script(login_dir / "theme.properties")
    return target


def _register_script(properties_path: Path) -> None:
    if not properties_path.exists():
        properties_path.write_text(f"parent=keycloak\nscripts={THEME_SCRIPT_ENTRY}\n", encoding="utf-8")
        logger.info("Created %s", properties_path)
        return

    lines = properties_path.read_text(encoding="utf-8").splitlines()
    for index, line in enumerate(lines):
        key, sep, value = line.partition("=")
        if not sep or key.strip() != "scripts":
            continue
        scripts = value.split()
        if THEME_SCRIPT_ENTRY in scripts:
            return
        scripts.append(THEME_SCRIPT_ENTRY)
        lines[index] = "scripts=" + " ".join(scripts)
        break
    else:
        lines.append(f"scripts={THEME_SCRIPT_ENTRY}")

    properties_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    logger.info("Registered %s in %s", THEME_SCRIPT_ENTRY, properties_path)
