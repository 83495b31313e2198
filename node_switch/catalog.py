"""
Unified catalog of installed Node.js versions across detected managers.

The catalog is rebuilt from scratch on every query: each manager's list
command runs, every line is parsed, duplicates are collapsed and the
result is ordered active-first, then newest-first.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, replace
from typing import Iterable, Sequence

from .managers import DetectedManager, ManagerDescriptor, render_list_command
from .parsers import VersionRecord, normalize_version, parse_output, version_key
from .runner import DEFAULT_TIMEOUT_SECONDS, Runner, run


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VersionCatalog:
    """
    Deduplicated, sorted view of every version visible to the managers.

    Attributes:
        records: Versions, active first then descending
        warnings: Partial failures (managers whose listing failed)
    """
    records: tuple[VersionRecord, ...] = ()
    warnings: tuple[str, ...] = ()

    def __iter__(self):
        return iter(self.records)

    def __len__(self) -> int:
        return len(self.records)

    @property
    def active(self) -> VersionRecord | None:
        """The record marked active, if any manager reported one."""
        for record in self.records:
            if record.is_active:
                return record
        return None

    def find(self, version: str) -> VersionRecord | None:
        """Look up a record by version, with or without the leading "v"."""
        wanted = normalize_version(version)
        for record in self.records:
            if record.version == wanted:
                return record
        return None

    def versions(self) -> list[str]:
        return [r.version for r in self.records]

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "versions": [r.to_dict() for r in self.records],
            "warnings": list(self.warnings),
        }


def dedupe_records(records: Iterable[VersionRecord]) -> list[VersionRecord]:
    """
    Collapse records sharing a version; the first occurrence wins.

    If a later duplicate is active, the surviving record is marked active
    too, since that version is the one in use.
    """
    kept: dict[str, VersionRecord] = {}
    for record in records:
        existing = kept.get(record.version)
        if existing is None:
            kept[record.version] = record
        elif record.is_active and not existing.is_active:
            kept[record.version] = replace(existing, is_active=True)
    return list(kept.values())


def sort_records(records: Iterable[VersionRecord]) -> list[VersionRecord]:
    """Order records active-first, then by numeric version, descending."""
    return sorted(
        records,
        key=lambda r: (r.is_active, version_key(r.version)),
        reverse=True,
    )


async def list_manager_versions(
    manager: ManagerDescriptor,
    platform: str | None = None,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
    runner: Runner = run,
) -> tuple[list[VersionRecord], str | None]:
    """
    Run one manager's list command and parse its output.

    Returns:
        Tuple of (records in line order, warning message or None)
    """
    result = await runner(render_list_command(manager, platform), timeout=timeout)
    if not result.success:
        warning = f"{manager.name}: listing failed ({result.error})"
        logger.warning(warning)
        return [], warning
    return parse_output(result.stdout, manager), None


async def build_catalog(
    detected: Sequence[DetectedManager],
    platform: str | None = None,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
    runner: Runner = run,
) -> VersionCatalog:
    """
    Query every detected manager and build the unified catalog.

    A manager whose listing fails contributes no records; its failure is
    kept as a warning and the build continues.

    Args:
        detected: Managers from detection (unavailable entries are ignored)
        platform: Platform family (default: current host)
        timeout: Timeout for each list command
        runner: Command runner

    Returns:
        Fresh VersionCatalog
    """
    managers = [d.descriptor for d in detected if d.available]
    results = await asyncio.gather(
        *(list_manager_versions(m, platform, timeout, runner) for m in managers)
    )

    collected: list[VersionRecord] = []
    warnings: list[str] = []
    for records, warning in results:
        collected.extend(records)
        if warning:
            warnings.append(warning)

    ordered = sort_records(dedupe_records(collected))
    logger.debug(f"Catalog built: {len(ordered)} versions from {len(managers)} managers")
    return VersionCatalog(records=tuple(ordered), warnings=tuple(warnings))
