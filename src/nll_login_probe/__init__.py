"""Federated login probe for the nll-light web application."""

from nll_login_probe.browser import Browser, ToolError
from nll_login_probe.config import ProbeSettings, RunnerOptions
from nll_login_probe.probe import (
    ElementTimeout,
    LoginFlowProbe,
    MarkerNotFound,
    NavigationMismatch,
    ProbeFailure,
    ProbeResult,
    RedirectTimeout,
    run_login_probe,
)

__all__ = [
    "Browser",
    "ElementTimeout",
    "LoginFlowProbe",
    "MarkerNotFound",
    "NavigationMismatch",
    "ProbeFailure",
    "ProbeResult",
    "ProbeSettings",
    "RedirectTimeout",
    "RunnerOptions",
    "ToolError",
    "run_login_probe",
]
