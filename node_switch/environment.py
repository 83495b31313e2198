"""
Host environment detection for platform-aware command rendering.

Detects:
- Host platform family ('windows', 'macos' or 'linux')
- Workspace root (nearest directory with a package.json), used by the
  current-version resolver for its npx fallback
"""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass
from pathlib import Path

from .common import vlog


VALID_PLATFORMS = ("windows", "macos", "linux")


@dataclass(frozen=True)
class Environment:
    """
    Detected host information.

    Attributes:
        platform: Platform family ('windows', 'macos' or 'linux')
        workspace_root: Nearest directory holding a package.json, if any
        indicators: Evidence for the detection decision
        override: Whether platform was explicitly overridden by user
    """
    platform: str
    workspace_root: str | None = None
    indicators: tuple[str, ...] = ()
    override: bool = False

    @property
    def is_windows(self) -> bool:
        return self.platform == "windows"

    def __str__(self) -> str:
        override_str = " (override)" if self.override else ""
        root = self.workspace_root or "no workspace"
        return f"{self.platform}{override_str} ({root})"


def platform_from_sys(sys_platform: str | None = None) -> str:
    """
    Map a ``sys.platform`` value onto a platform family.

    Args:
        sys_platform: Value to map (default: current ``sys.platform``)

    Returns:
        'windows', 'macos' or 'linux'
    """
    value = sys_platform if sys_platform is not None else sys.platform
    if value.startswith("win") or value == "cygwin":
        return "windows"
    if value == "darwin":
        return "macos"
    return "linux"


def find_workspace_root(start: str | os.PathLike[str] | None = None) -> str | None:
    """
    Walk upwards from ``start`` to the nearest directory containing package.json.

    Args:
        start: Directory to start from (default: current working directory)

    Returns:
        Absolute path of the workspace root, or None if no package.json is found
    """
    current = Path(start) if start is not None else Path.cwd()
    try:
        current = current.resolve()
    except OSError:
        return None

    for candidate in (current, *current.parents):
        if (candidate / "package.json").is_file():
            return str(candidate)
    return None


def detect_environment(
    override: str | None = None,
    cwd: str | os.PathLike[str] | None = None,
    verbose: bool = False,
) -> Environment:
    """
    Detect the host platform and workspace root.

    Args:
        override: Explicit platform ('windows', 'macos', 'linux', 'auto' or None)
        cwd: Directory to search for a workspace root from
        verbose: Enable verbose logging

    Returns:
        Environment object with detected or overridden platform

    Raises:
        ValueError: If override value is not valid
    """
    workspace_root = find_workspace_root(cwd)
    indicators = []
    if workspace_root:
        indicators.append(f"package_json={workspace_root}")

    if override and override != "auto":
        if override not in VALID_PLATFORMS:
            raise ValueError(
                f"Invalid platform override: {override}. "
                f"Must be one of: {', '.join(VALID_PLATFORMS)}"
            )
        vlog(f"Platform explicitly set to: {override}", verbose)
        return Environment(
            platform=override,
            workspace_root=workspace_root,
            indicators=(f"explicit_override={override}", *indicators),
            override=True,
        )

    platform = platform_from_sys()
    indicators.insert(0, f"sys.platform={sys.platform}")
    if platform == "windows" and os.environ.get("COMSPEC"):
        indicators.append(f"env:COMSPEC={os.environ['COMSPEC']}")

    vlog(f"Platform detected: {platform} {indicators}", verbose)
    return Environment(
        platform=platform,
        workspace_root=workspace_root,
        indicators=tuple(indicators),
    )
