"""
Version switch orchestration with best-effort verification.

A switch attempt moves through:

    Idle -> CommandBuilt -> Executed -> Confirmed
                                     -> ExecutedUnconfirmed
                         -> Failed

Managers mutate only the environment of the shell they run in, so the
verification step is advisory: a switch that ran but cannot be observed
from this process is ExecutedUnconfirmed, not Failed. Confirmed and
ExecutedUnconfirmed both recommend restarting the consuming process.
"""

from __future__ import annotations

import asyncio
import logging
import os
from dataclasses import dataclass
from typing import Awaitable, Callable, ClassVar, Union

from .catalog import list_manager_versions
from .managers import ManagerDescriptor, render_install_command, render_use_command
from .parsers import VersionRecord, normalize_version
from .resolver import resolve_current_version
from .runner import DEFAULT_TIMEOUT_SECONDS, Runner, run


logger = logging.getLogger(__name__)

DEFAULT_SETTLE_DELAY_SECONDS = 2.0
DEFAULT_VERIFY_TIMEOUT_SECONDS = 5.0
DEFAULT_VERIFY_INTERVAL_SECONDS = 1.0

Sleep = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class Confirmed:
    """The switch ran and the target version was observed as active."""
    status: ClassVar[str] = "confirmed"

    version: str
    manager: str = ""
    command: str = ""

    @property
    def restart_recommended(self) -> bool:
        return True

    def to_dict(self) -> dict:
        return {
            "status": self.status,
            "version": self.version,
            "manager": self.manager,
            "command": self.command,
            "restart_recommended": self.restart_recommended,
        }


@dataclass(frozen=True)
class ExecutedUnconfirmed:
    """The switch command succeeded but the new version could not be observed."""
    status: ClassVar[str] = "unconfirmed"

    version: str
    reason: str
    manager: str = ""
    command: str = ""

    @property
    def restart_recommended(self) -> bool:
        return True

    def to_dict(self) -> dict:
        return {
            "status": self.status,
            "version": self.version,
            "reason": self.reason,
            "manager": self.manager,
            "command": self.command,
            "restart_recommended": self.restart_recommended,
        }


@dataclass(frozen=True)
class Failed:
    """The switch could not be performed."""
    status: ClassVar[str] = "failed"

    reason: str
    version: str | None = None
    manager: str = ""
    command: str = ""

    @property
    def restart_recommended(self) -> bool:
        return False

    def to_dict(self) -> dict:
        return {
            "status": self.status,
            "version": self.version,
            "reason": self.reason,
            "manager": self.manager,
            "command": self.command,
            "restart_recommended": self.restart_recommended,
        }


SwitchOutcome = Union[Confirmed, ExecutedUnconfirmed, Failed]


@dataclass(frozen=True)
class InstallResult:
    """
    Result of installing a Node.js version through a manager.

    Attributes:
        version: Requested version
        manager: Manager used
        command: Command line that ran
        success: Whether the install command exited zero
        output: Captured stdout
        error_message: Failure description if unsuccessful
    """
    version: str
    manager: str
    command: str
    success: bool
    output: str = ""
    error_message: str | None = None

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "version": self.version,
            "manager": self.manager,
            "command": self.command,
            "success": self.success,
            "output": self.output,
            "error_message": self.error_message,
        }


async def _observe(
    target: str,
    manager: ManagerDescriptor,
    platform: str | None,
    workspace_root: str | os.PathLike[str] | None,
    timeout: float,
    runner: Runner,
) -> tuple[bool, str | None]:
    """
    Re-query the environment once for the target version.

    Returns:
        Tuple of (confirmed, version observed as active or None)
    """
    records, _warning = await list_manager_versions(manager, platform, timeout, runner)
    listed_active = next((r.version for r in records if r.is_active), None)
    if listed_active == target:
        return True, listed_active

    current = await resolve_current_version(workspace_root, timeout=timeout, runner=runner)
    if current and normalize_version(current) == target:
        return True, normalize_version(current)

    return False, listed_active or current


async def switch_to(
    record: VersionRecord,
    platform: str | None = None,
    settle_delay: float = DEFAULT_SETTLE_DELAY_SECONDS,
    verify_timeout: float = DEFAULT_VERIFY_TIMEOUT_SECONDS,
    verify_interval: float = DEFAULT_VERIFY_INTERVAL_SECONDS,
    windows_bare_version: bool = True,
    workspace_root: str | os.PathLike[str] | None = None,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
    runner: Runner = run,
    sleep: Sleep = asyncio.sleep,
) -> SwitchOutcome:
    """
    Switch to a version through its owning manager and try to confirm it.

    Args:
        record: Target version and the manager that owns it
        platform: Platform family (default: current host)
        settle_delay: Seconds to wait after the command before verifying
        verify_timeout: Additional seconds verification may keep polling;
            the whole verification phase is bounded by it plus one interval
        verify_interval: Seconds between verification attempts
        windows_bare_version: Strip "v" for nvm on Windows
        workspace_root: Project directory for the resolver's npx fallback
        timeout: Timeout for each command
        runner: Command runner
        sleep: Awaitable sleep (injectable for tests)

    Returns:
        Confirmed, ExecutedUnconfirmed or Failed
    """
    manager = record.manager
    target = normalize_version(record.version)

    command = render_use_command(manager, target, platform, windows_bare_version)
    logger.info(f"Switching to {target} with {manager.name}: {command}")

    result = await runner(command, timeout=timeout)
    if not result.success:
        logger.error(f"Switch command failed: {command} - {result.error}")
        return Failed(
            reason=f"{manager.name} could not switch to {target}: {result.error}",
            version=target,
            manager=manager.name,
            command=command,
        )

    if settle_delay > 0:
        await sleep(settle_delay)

    attempts = 1
    if verify_interval > 0 and verify_timeout > 0:
        attempts += int(verify_timeout // verify_interval)

    # The final attempt gets one interval of its own on top of verify_timeout
    budget = verify_timeout + (
        verify_interval if verify_interval > 0 else DEFAULT_VERIFY_INTERVAL_SECONDS
    )
    loop = asyncio.get_running_loop()
    deadline = loop.time() + budget
    observed = None

    async def poll() -> bool:
        nonlocal observed
        for attempt in range(attempts):
            query_timeout = min(timeout, max(deadline - loop.time(), 0.01))
            confirmed, observed = await _observe(
                target, manager, platform, workspace_root, query_timeout, runner
            )
            if confirmed:
                return True
            if attempt < attempts - 1:
                await sleep(verify_interval)
        return False

    try:
        confirmed = await asyncio.wait_for(poll(), timeout=budget)
    except asyncio.TimeoutError:
        logger.debug(f"Verification of {target} ran out of time after {budget}s")
        confirmed = False

    if confirmed:
        logger.info(f"Switch to {target} confirmed")
        return Confirmed(version=target, manager=manager.name, command=command)

    reason = (
        f"{manager.name} ran successfully but the active version is "
        f"{observed or 'unknown'}; new shells will pick up {target}"
    )
    logger.warning(f"Switch to {target} unconfirmed: {reason}")
    return ExecutedUnconfirmed(
        version=target, reason=reason, manager=manager.name, command=command
    )


async def install_version(
    version: str,
    manager: ManagerDescriptor,
    platform: str | None = None,
    windows_bare_version: bool = True,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
    runner: Runner = run,
) -> InstallResult:
    """
    Install a Node.js version with the given manager.

    Args:
        version: Version to install (normalized to a leading "v")
        manager: Manager performing the install
        platform: Platform family (default: current host)
        windows_bare_version: Strip "v" for nvm on Windows
        timeout: Timeout for the install command
        runner: Command runner

    Returns:
        InstallResult describing the outcome
    """
    target = normalize_version(version)
    command = render_install_command(manager, target, platform, windows_bare_version)
    logger.info(f"Installing {target} with {manager.name}: {command}")

    result = await runner(command, timeout=timeout)
    if not result.success:
        logger.error(f"Install failed: {command} - {result.error}")
        return InstallResult(
            version=target,
            manager=manager.name,
            command=command,
            success=False,
            error_message=str(result.error),
        )

    return InstallResult(
        version=target,
        manager=manager.name,
        command=command,
        success=True,
        output=result.stdout,
    )
