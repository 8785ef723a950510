"""Command line entry point: ``nll-login-probe``."""
from __future__ import annotations

import argparse
import asyncio
import dataclasses
import logging
import sys
from typing import List, Optional

from playwright.async_api import Error as PlaywrightError

from nll_login_probe.browser import ToolError
from nll_login_probe.config import ProbeSettings
from nll_login_probe.probe import ProbeFailure, run_login_probe
from nll_login_probe.trim_inputs import install_theme_asset

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="nll-login-probe",
        description="Federated login probe and Keycloak theme tooling",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    commands = parser.add_subparsers(dest="command", required=True)

    probe = commands.add_parser("probe", help="Log in through the identity provider once")
    probe.add_argument("--base-url", help="Application base URL (default: APP_URL)")
    probe.add_argument("--username", help="Login name (default: KEYCLOAK_USER)")
    probe.add_argument("--password", help="Password (default: KEYCLOAK_PASS)")
    probe.add_argument("--headed", action="store_true", help="Show the browser window")
    probe.add_argument("--check-logout", action="store_true", help="Also log out and verify the login page")
    probe.add_argument("--screenshot-dir", help="Write a screenshot here when a step fails")

    theme = commands.add_parser("install-theme", help="Install the credential trimming script into a login theme")
    theme.add_argument("theme_dir", help="Theme directory, e.g. themes/nll-light")
    return parser


def settings_from_args(args: argparse.Namespace) -> ProbeSettings:
    """Environment settings with command line overrides applied."""
    settings = ProbeSettings.from_env()
    overrides = {}
    if args.base_url:
        overrides["base_url"] = args.base_url
    if args.username:
        overrides["username"] = args.username
    if args.password:
        overrides["password"] = args.password
    if args.screenshot_dir:
        overrides["screenshot_dir"] = args.screenshot_dir
    if args.headed:
        overrides["runner"] = dataclasses.replace(settings.runner, headless=False)
    return dataclasses.replace(settings, **overrides)


def _run_probe(args: argparse.Namespace) -> int:
    settings = settings_from_args(args)
    try:
        result = asyncio.run(run_login_probe(settings, check_logout=args.check_logout))
    except ProbeFailure as failure:
        logger.error("FAILED %s", failure)
        return 1
    except (ToolError, PlaywrightError) as exc:
        logger.error("Browser error: %s", exc)
        return 1
    logger.info("OK %s (found '%s')", result.final_url, result.marker)
    return 0


def _install_theme(args: argparse.Namespace) -> int:
    target = install_theme_asset(args.theme_dir)
    logger.info("Theme script ready at %s", target)
    return 0


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point"""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    try:
        if args.command == "probe":
            code = _run_probe(args)
        else:
            code = _install_theme(args)
    except RuntimeError as exc:
        logger.error("%s", exc)
        code = 2
    sys.exit(code)


if __name__ == "__main__":
    main()
