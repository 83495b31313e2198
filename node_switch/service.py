"""
Headless facade used by presentation layers (CLI, status widgets).

Every operation is a coroutine and reports environmental faults as
values: an optional string, a catalog with warnings, a tagged switch
outcome or an InstallResult. Nothing here raises for a missing manager
or a failing command.
"""

from __future__ import annotations

import asyncio
import logging

from .catalog import VersionCatalog, build_catalog, list_manager_versions
from .config import Config
from .environment import Environment, detect_environment
from .managers import (
    DetectedManager,
    ManagerSelectionError,
    detect_available_managers,
    managers_by_name,
    select_manager,
)
from .parsers import VersionRecord, normalize_version
from .resolver import resolve_current_version
from .runner import Runner, run
from .switcher import Failed, InstallResult, Sleep, SwitchOutcome, install_version, switch_to


logger = logging.getLogger(__name__)


class NodeVersionService:
    """Query and switch the active Node.js version through installed managers."""

    def __init__(
        self,
        config: Config | None = None,
        environment: Environment | None = None,
        runner: Runner = run,
        sleep: Sleep = asyncio.sleep,
        verbose: bool = False,
    ):
        self.config = config or Config()
        self.environment = environment or detect_environment()
        self.runner = runner
        self.sleep = sleep
        self.verbose = verbose

    @property
    def platform(self) -> str:
        return self.environment.platform

    async def managers(self) -> list[DetectedManager]:
        """Probe the enabled managers and return the available ones."""
        return await detect_available_managers(
            managers_by_name(self.config.managers),
            platform=self.platform,
            timeout=self.config.timeouts.probe_seconds,
            runner=self.runner,
            verbose=self.verbose,
        )

    async def list_versions(self) -> VersionCatalog:
        """Detect managers and build a fresh catalog of installed versions."""
        detected = await self.managers()
        return await build_catalog(
            detected,
            platform=self.platform,
            timeout=self.config.timeouts.command_seconds,
            runner=self.runner,
        )

    async def current_version(self) -> str | None:
        """Resolve the active Node.js version, or None when Node.js is not found."""
        return await resolve_current_version(
            self.environment.workspace_root,
            timeout=self.config.timeouts.command_seconds,
            runner=self.runner,
        )

    async def _find_record(self, version: str, manager_name: str | None) -> VersionRecord | None:
        if manager_name is None:
            catalog = await self.list_versions()
            return catalog.find(version)

        detected = await self.managers()
        for candidate in detected:
            if candidate.name != manager_name:
                continue
            records, _warning = await list_manager_versions(
                candidate.descriptor,
                self.platform,
                self.config.timeouts.command_seconds,
                self.runner,
            )
            wanted = normalize_version(version)
            return next((r for r in records if r.version == wanted), None)
        return None

    async def switch(
        self,
        target: VersionRecord | str,
        manager: str | None = None,
    ) -> SwitchOutcome:
        """
        Switch to a catalog record, or to a version string looked up in the catalog.

        Args:
            target: VersionRecord from ``list_versions`` or a version such as "18.17.0"
            manager: Restrict a string lookup to one manager

        Returns:
            Confirmed, ExecutedUnconfirmed or Failed
        """
        if isinstance(target, VersionRecord):
            record = target
        else:
            record = await self._find_record(target, manager)
            if record is None:
                where = f" for {manager}" if manager else ""
                return Failed(
                    reason=f"Version {normalize_version(target)} is not installed{where}",
                    version=normalize_version(target),
                    manager=manager or "",
                )

        prefs = self.config.switch
        return await switch_to(
            record,
            platform=self.platform,
            settle_delay=prefs.settle_delay_seconds,
            verify_timeout=prefs.verify_timeout_seconds,
            verify_interval=prefs.verify_interval_seconds,
            windows_bare_version=prefs.nvm_windows_bare_version,
            workspace_root=self.environment.workspace_root,
            timeout=self.config.timeouts.command_seconds,
            runner=self.runner,
            sleep=self.sleep,
        )

    async def install(self, version: str, manager: str | None = None) -> InstallResult:
        """
        Install a version with the requested, preferred or only available manager.

        Returns:
            InstallResult; selection problems come back as an unsuccessful result
        """
        detected = await self.managers()
        try:
            descriptor = select_manager(
                detected, manager or self.config.switch.preferred_manager
            )
        except ManagerSelectionError as e:
            logger.error(str(e))
            return InstallResult(
                version=normalize_version(version),
                manager=manager or "",
                command="",
                success=False,
                error_message=str(e),
            )

        return await install_version(
            version,
            descriptor,
            platform=self.platform,
            windows_bare_version=self.config.switch.nvm_windows_bare_version,
            timeout=self.config.timeouts.command_seconds,
            runner=self.runner,
        )
