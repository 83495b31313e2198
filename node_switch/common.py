"""
Common utilities shared across node_switch modules.
"""

from __future__ import annotations

import os
import re


ANSI_ESCAPE_RE = re.compile(r"\x1b\[[0-9;]*[A-Za-z]")


def debug_enabled() -> bool:
    """Check whether NODE_SWITCH_DEBUG forces verbose tracing."""
    return os.environ.get("NODE_SWITCH_DEBUG", "0") == "1"


def vlog(msg: str, verbose: bool = False) -> None:
    """
    Log a verbose trace message.

    Messages are emitted at INFO on the ``node_switch`` logger when
    ``verbose`` is set or NODE_SWITCH_DEBUG=1, and dropped otherwise.

    Args:
        msg: Message to log
        verbose: Whether verbose mode is enabled
    """
    if verbose or debug_enabled():
        from .logging_config import get_logger
        get_logger().info(msg)


def strip_ansi(text: str) -> str:
    """Remove ANSI color/cursor sequences from manager output."""
    return ANSI_ESCAPE_RE.sub("", text)


def split_lines(output: str) -> list[str]:
    """
    Split command output into non-blank, ANSI-free lines.

    Args:
        output: Raw stdout text

    Returns:
        Lines with trailing whitespace and color codes removed
    """
    lines = []
    for line in output.splitlines():
        cleaned = strip_ansi(line).rstrip()
        if cleaned.strip():
            lines.append(cleaned)
    return lines
