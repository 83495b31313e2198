"""
Output rendering and formatting for terminal presentation.
"""

from __future__ import annotations

import os
import sys
from typing import Any, Sequence

from .catalog import VersionCatalog
from .managers import DetectedManager
from .switcher import Confirmed, ExecutedUnconfirmed, Failed, InstallResult


# Environment options
USE_EMOJI = os.environ.get("NODE_SWITCH_EMOJI", "1") == "1"
USE_COLOR = os.environ.get("NODE_SWITCH_COLOR", "1") == "1" and not os.environ.get("NO_COLOR")

# ANSI color codes
GREEN = "\033[32m"
BOLD_GREEN = "\033[1;32m"
YELLOW = "\033[33m"
BLUE = "\033[34m"
RED = "\033[31m"
RESET = "\033[0m"

STATE_OK = "ok"
STATE_NOT_FOUND = "not_found"
STATE_ERROR = "error"

NOT_FOUND_TEXT = "Node.js not found"
NOT_FOUND_HINT = "Node.js is not installed or not in PATH."
ERROR_TEXT = "Node Error"
RESTART_HINT = "Restart your terminal or editor so new processes pick up the switched version."


def status_icon(state: str) -> str:
    """Get status icon for a status state (ok, not_found, error, unconfirmed, failed)."""
    if not USE_EMOJI:
        return {"ok": "✓", "not_found": "!", "unconfirmed": "?", "error": "x", "failed": "x"}.get(state, "?")
    return {"ok": "✅", "not_found": "⚠", "unconfirmed": "❓", "error": "❌", "failed": "❌"}.get(state, "❓")


def colorize(text: str, color: str) -> str:
    """Apply color to text, or return it unchanged if colors are disabled."""
    if not USE_COLOR or not text:
        return text
    return f"{color}{text}{RESET}"


def format_status(
    version: str | None,
    template: str = "Node {version}",
    error_message: str | None = None,
) -> tuple[str, str, str]:
    """
    Build status-line text for the current version.

    Args:
        version: Resolved version, or None if Node.js was not found
        template: Display template with a {version} placeholder
        error_message: Set when resolution itself raised an unexpected error

    Returns:
        Tuple of (state, text, tooltip)
    """
    if error_message:
        return STATE_ERROR, f"{status_icon(STATE_ERROR)} {ERROR_TEXT}", f"{error_message}. Run again to refresh."
    if not version:
        return STATE_NOT_FOUND, f"{status_icon(STATE_NOT_FOUND)} {NOT_FOUND_TEXT}", NOT_FOUND_HINT
    return STATE_OK, template.replace("{version}", version), f"Node.js {version}"


def format_outcome(outcome: Any) -> str:
    """
    Describe a switch outcome for the user.

    Confirmed, unconfirmed and failed switches read differently, and the
    first two carry the restart hint.
    """
    if isinstance(outcome, Confirmed):
        message = colorize(f"{status_icon('ok')} Switched to {outcome.version} ({outcome.manager})", GREEN)
    elif isinstance(outcome, ExecutedUnconfirmed):
        message = colorize(
            f"{status_icon('unconfirmed')} Switch to {outcome.version} ran but is unconfirmed: {outcome.reason}",
            YELLOW,
        )
    elif isinstance(outcome, Failed):
        return colorize(f"{status_icon('failed')} Switch failed: {outcome.reason}", RED)
    else:
        raise TypeError(f"Unknown switch outcome: {outcome!r}")
    return f"{message}\n{RESTART_HINT}"


def format_install(result: InstallResult) -> str:
    """Describe an install result for the user."""
    if result.success:
        return colorize(f"{status_icon('ok')} Installed {result.version} with {result.manager}", GREEN)
    return colorize(f"{status_icon('failed')} Install of {result.version} failed: {result.error_message}", RED)


def render_catalog(catalog: VersionCatalog, current: str | None = None) -> None:
    """Render the catalog as a pipe-delimited table, followed by any warnings.

    Args:
        catalog: Catalog to render
        current: Version reported by ``node --version``, marked with "*"
    """
    print("|".join(("state", "version", "manager", "path")))
    for record in catalog:
        marker = "*" if record.is_active or (current and record.version == current) else " "
        color = BOLD_GREEN if record.is_active else BLUE
        print("|".join((
            marker,
            colorize(record.version, color),
            record.manager.name,
            record.install_path or "",
        )))

    if not catalog.records:
        print("# No installed Node.js versions found", file=sys.stderr)
    for warning in catalog.warnings:
        print(f"# warning: {warning}", file=sys.stderr)


def render_managers(detected: Sequence[DetectedManager]) -> None:
    """Render detected managers as a pipe-delimited table."""
    print("|".join(("manager", "version")))
    for manager in detected:
        print("|".join((manager.descriptor.display_name, manager.probe_output.strip())))
    if not detected:
        print("# No Node.js version manager found (looked for nvm, fnm, volta)", file=sys.stderr)
