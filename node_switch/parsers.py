"""
Per-manager parsing of "list installed versions" output.

Each supported manager prints its installed runtimes differently:

    nvm (POSIX)     ->     v18.17.0
                           v16.20.0
    nvm (Windows)     * 18.17.0 (Currently using 64-bit executable)
                        16.20.0
    fnm             * v18.17.0 default
                      v16.20.0
    volta               v18.17.0 (current @ /home/me/app/package.json)
                        16.20.0

``parse_line`` dispatches on the manager name to one of the line parsers
below. Parsing is pure: unmatched lines yield None, never an exception.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable

from packaging.version import Version

from .common import split_lines, strip_ansi
from .managers import ManagerDescriptor


VERSION_RE = re.compile(r"v?(\d+)\.(\d+)\.(\d+)")
NORMALIZED_VERSION_RE = re.compile(r"^v\d+\.\d+\.\d+$")
LOWEST_VERSION = Version("0")

# Marker, then the version as the first token; alias lines such as
# "default -> 18 (-> v18.17.0)" do not match
NVM_LINE_RE = re.compile(r"^\s*(?P<marker>->|\*)?\s*(?P<version>v?\d+\.\d+\.\d+)\b")
FNM_LINE_RE = re.compile(r"^\s*(?P<marker>\*)?\s*(?P<version>v?\d+\.\d+\.\d+)\b")
VOLTA_LINE_RE = re.compile(
    r"^\s*(?:runtime\s+)?(?:node@)?v?(?P<version>\d+\.\d+\.\d+)\b"
    r"[^(]*(?:\((?P<note>[^)]*)\))?"
)
VOLTA_NOTE_KEYWORD_RE = re.compile(r"^\s*(current|default)\b\s*@?\s*", re.IGNORECASE)


@dataclass(frozen=True)
class VersionRecord:
    """
    One installed Node.js version as reported by a manager.

    Attributes:
        version: Normalized version ("v" + three numeric components)
        manager: Manager that reported it
        is_active: Whether the manager marks it as the current version
        install_path: Location captured from the listing, if any
    """
    version: str
    manager: ManagerDescriptor
    is_active: bool = False
    install_path: str | None = None

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "version": self.version,
            "manager": self.manager.name,
            "is_active": self.is_active,
            "install_path": self.install_path,
        }


def normalize_version(version: str) -> str:
    """
    Normalize a version string to carry exactly one leading "v".

    Idempotent: normalizing "v18.17.0" returns "v18.17.0".

    Args:
        version: Version string (e.g., "18.17.0", "v18.17.0", "V18.17.0")

    Returns:
        Normalized version string
    """
    version = version.strip()
    if version[:1] in ("v", "V"):
        version = version[1:]
    return f"v{version}"


def is_normalized(version: str) -> bool:
    """Check whether a string matches the v<major>.<minor>.<patch> form."""
    return bool(NORMALIZED_VERSION_RE.match(version))


def version_key(version: str) -> Version:
    """
    Sort key for a version string.

    Compares component-wise, so v18.17.0 > v9.0.0. Strings without a
    recognizable version sort lowest.
    """
    m = VERSION_RE.search(version)
    if not m:
        return LOWEST_VERSION
    return Version(".".join(m.groups()))


def _parse_nvm_line(line: str, manager: ManagerDescriptor) -> VersionRecord | None:
    m = NVM_LINE_RE.match(line)
    if not m:
        return None
    return VersionRecord(
        version=normalize_version(m.group("version")),
        manager=manager,
        is_active=m.group("marker") is not None,
    )


def _parse_fnm_line(line: str, manager: ManagerDescriptor) -> VersionRecord | None:
    m = FNM_LINE_RE.match(line)
    if not m:
        return None
    # fnm prints the "v" itself; normalization only fills it in when absent
    return VersionRecord(
        version=normalize_version(m.group("version")),
        manager=manager,
        is_active=m.group("marker") is not None,
    )


def _parse_volta_line(line: str, manager: ManagerDescriptor) -> VersionRecord | None:
    m = VOLTA_LINE_RE.match(line)
    if not m:
        return None

    note = m.group("note")
    is_active = False
    install_path = None
    if note is not None:
        keyword = VOLTA_NOTE_KEYWORD_RE.match(note)
        is_active = bool(keyword) and keyword.group(1).lower() == "current"
        remainder = note[keyword.end():] if keyword else note
        install_path = remainder.strip() or None

    return VersionRecord(
        version=normalize_version(m.group("version")),
        manager=manager,
        is_active=is_active,
        install_path=install_path,
    )


LineParser = Callable[[str, ManagerDescriptor], "VersionRecord | None"]

LINE_PARSERS: dict[str, LineParser] = {
    "nvm": _parse_nvm_line,
    "fnm": _parse_fnm_line,
    "volta": _parse_volta_line,
}


def parse_line(raw_line: str, manager: ManagerDescriptor) -> VersionRecord | None:
    """
    Parse one line of a manager's version listing.

    Args:
        raw_line: Line of ``list`` output (blank lines are filtered by callers)
        manager: Manager that produced the line

    Returns:
        VersionRecord, or None if the line does not describe an installed version
    """
    parser = LINE_PARSERS.get(manager.name)
    if parser is None:
        return None
    return parser(strip_ansi(raw_line), manager)


def parse_output(output: str, manager: ManagerDescriptor) -> list[VersionRecord]:
    """Parse every non-blank line of a listing, in line order."""
    records = []
    for line in split_lines(output):
        record = parse_line(line, manager)
        if record is not None:
            records.append(record)
    return records
