"""
Version manager registry, detection and selection.

Supported Node.js version managers, in probe order:
1. nvm (nvm-sh on POSIX, nvm-windows on Windows)
2. fnm (Fast Node Manager)
3. volta
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Sequence

from .common import vlog
from .environment import platform_from_sys
from .runner import Runner, run, wrap_for_platform


logger = logging.getLogger(__name__)

PROBE_TIMEOUT_SECONDS = 3.0
VERSION_PLACEHOLDER = "{version}"


class ManagerSelectionError(ValueError):
    """Raised when no version manager can be chosen for an operation."""


@dataclass(frozen=True)
class ManagerDescriptor:
    """
    Version manager definition.

    Attributes:
        name: Manager identifier ("nvm", "fnm", "volta"), also the parser tag
        display_name: Human-readable name
        probe_command: Command proving the manager is installed
        list_command: Command listing installed Node.js versions
        use_command_template: Switch command ({version} placeholder)
        install_command_template: Install command ({version} placeholder)
    """
    name: str
    display_name: str
    probe_command: str
    list_command: str
    use_command_template: str
    install_command_template: str


@dataclass(frozen=True)
class DetectedManager:
    """A manager descriptor together with its probe result."""
    descriptor: ManagerDescriptor
    available: bool
    probe_output: str = ""

    @property
    def name(self) -> str:
        return self.descriptor.name

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "name": self.descriptor.name,
            "display_name": self.descriptor.display_name,
            "available": self.available,
            "version": self.probe_output.strip(),
        }


MANAGERS = (
    ManagerDescriptor(
        name="nvm",
        display_name="nvm",
        probe_command="nvm --version",
        list_command="nvm list",
        use_command_template="nvm use {version}",
        install_command_template="nvm install {version}",
    ),
    ManagerDescriptor(
        name="fnm",
        display_name="fnm (Fast Node Manager)",
        probe_command="fnm --version",
        list_command="fnm list",
        use_command_template="fnm use {version}",
        install_command_template="fnm install {version}",
    ),
    ManagerDescriptor(
        name="volta",
        display_name="Volta",
        probe_command="volta --version",
        list_command="volta list node",
        use_command_template="volta install node@{version}",
        install_command_template="volta install node@{version}",
    ),
)

_MANAGER_BY_NAME = {m.name: m for m in MANAGERS}


def get_manager(name: str) -> ManagerDescriptor | None:
    """
    Get manager descriptor by name.

    Returns:
        ManagerDescriptor, or None if the name is not a supported manager
    """
    return _MANAGER_BY_NAME.get(name)


def managers_by_name(names: Sequence[str]) -> tuple[ManagerDescriptor, ...]:
    """Resolve configured manager names into descriptors, skipping unknown names."""
    return tuple(_MANAGER_BY_NAME[n] for n in names if n in _MANAGER_BY_NAME)


def _resolve_platform(platform: str | None) -> str:
    return platform if platform is not None else platform_from_sys()


def version_argument(
    manager: ManagerDescriptor,
    version: str,
    platform: str | None = None,
    windows_bare_version: bool = True,
) -> str:
    """
    Format a version for a manager's command line.

    nvm-for-Windows expects a bare numeric version, so the leading "v" is
    stripped there unless ``windows_bare_version`` is disabled. Every other
    combination keeps the version as given.
    """
    if (
        manager.name == "nvm"
        and _resolve_platform(platform) == "windows"
        and windows_bare_version
    ):
        return version[1:] if version[:1] in ("v", "V") else version
    return version


def render_probe_command(manager: ManagerDescriptor, platform: str | None = None) -> str:
    return wrap_for_platform(manager.probe_command, manager.name, _resolve_platform(platform))


def render_list_command(manager: ManagerDescriptor, platform: str | None = None) -> str:
    return wrap_for_platform(manager.list_command, manager.name, _resolve_platform(platform))


def render_use_command(
    manager: ManagerDescriptor,
    version: str,
    platform: str | None = None,
    windows_bare_version: bool = True,
) -> str:
    """
    Render the switch command for a version.

    Args:
        manager: Owning manager
        version: Target version as parsed (e.g. "v18.17.0")
        platform: Platform family (default: current host)
        windows_bare_version: Strip "v" for nvm on Windows

    Returns:
        Platform-wrapped command line
    """
    platform = _resolve_platform(platform)
    arg = version_argument(manager, version, platform, windows_bare_version)
    command = manager.use_command_template.replace(VERSION_PLACEHOLDER, arg)
    return wrap_for_platform(command, manager.name, platform)


def render_install_command(
    manager: ManagerDescriptor,
    version: str,
    platform: str | None = None,
    windows_bare_version: bool = True,
) -> str:
    """Render the install command for a version (same version rules as ``render_use_command``)."""
    platform = _resolve_platform(platform)
    arg = version_argument(manager, version, platform, windows_bare_version)
    command = manager.install_command_template.replace(VERSION_PLACEHOLDER, arg)
    return wrap_for_platform(command, manager.name, platform)


async def probe_manager(
    manager: ManagerDescriptor,
    platform: str | None = None,
    timeout: float = PROBE_TIMEOUT_SECONDS,
    runner: Runner = run,
) -> DetectedManager:
    """
    Check whether a single manager is installed and invocable.

    Args:
        manager: Manager to probe
        platform: Platform family (default: current host)
        timeout: Timeout in seconds for the probe command
        runner: Command runner

    Returns:
        DetectedManager; available only if the probe exited zero
    """
    result = await runner(render_probe_command(manager, platform), timeout=timeout)
    if not result.success:
        logger.debug(f"Manager {manager.name} not available: {result.error}")
        return DetectedManager(manager, available=False)
    return DetectedManager(manager, available=True, probe_output=result.stdout)


async def detect_available_managers(
    descriptors: Sequence[ManagerDescriptor] = MANAGERS,
    platform: str | None = None,
    timeout: float = PROBE_TIMEOUT_SECONDS,
    runner: Runner = run,
    verbose: bool = False,
) -> list[DetectedManager]:
    """
    Probe every manager concurrently and return the available ones.

    Probe failures are never reported; they only exclude the manager.
    Output order follows ``descriptors`` regardless of completion order.

    Args:
        descriptors: Managers to probe, in preference order
        platform: Platform family (default: current host)
        timeout: Timeout for each probe
        runner: Command runner
        verbose: Enable verbose logging

    Returns:
        Available managers in descriptor order
    """
    results = await asyncio.gather(
        *(probe_manager(d, platform, timeout, runner) for d in descriptors)
    )
    available = [r for r in results if r.available]
    vlog(f"Available managers: {[m.name for m in available]}", verbose)
    return available


def select_manager(
    detected: Sequence[DetectedManager],
    preferred: str | None = None,
) -> ManagerDescriptor:
    """
    Choose the manager for an operation that is not tied to a listed version.

    Selection priority:
    1. Explicit preferred name, if that manager is available
    2. The only available manager (auto-select)

    Raises:
        ManagerSelectionError: If nothing is available, the preferred manager
            is unavailable, or several managers are available with no preference
    """
    available = [m.descriptor for m in detected if m.available]
    if not available:
        raise ManagerSelectionError(
            "No Node.js version manager found. Install nvm, fnm or volta."
        )

    if preferred:
        for descriptor in available:
            if descriptor.name == preferred:
                return descriptor
        raise ManagerSelectionError(
            f"Preferred manager '{preferred}' is not available "
            f"(available: {', '.join(d.name for d in available)})"
        )

    if len(available) == 1:
        return available[0]

    raise ManagerSelectionError(
        f"Multiple managers available ({', '.join(d.name for d in available)}); "
        "choose one with --manager or switch.preferred_manager"
    )
