"""
Configuration file parsing and management.

Supports YAML configuration files with JSON as an alternative format.
Merges configurations from multiple sources (project → user → system → defaults).
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .common import vlog
from .managers import MANAGERS


# Configuration file locations (in priority order)
CONFIG_LOCATIONS = [
    ".node-switch.yml",                                     # Project root (highest priority)
    ".node-switch.yaml",
    os.path.expanduser("~/.config/node-switch/config.yml"),  # User global
    os.path.expanduser("~/.config/node-switch/config.yaml"),
    "/etc/node-switch/config.yml",                          # System global
    "/etc/node-switch/config.yaml",
]

KNOWN_MANAGERS = tuple(m.name for m in MANAGERS)
DEFAULT_STATUS_TEXT = "Node {version}"


@dataclass(frozen=True)
class DisplayPreferences:
    """
    Presentation settings consumed by status renderers.

    Attributes:
        show_in_status_bar: Whether the status line is shown at all
        status_bar_text: Template with a {version} placeholder
        refresh_interval: Seconds between automatic refreshes (0 disables)
    """
    show_in_status_bar: bool = True
    status_bar_text: str = DEFAULT_STATUS_TEXT
    refresh_interval: int = 0

    def __post_init__(self):
        if self.refresh_interval < 0 or self.refresh_interval > 86400:
            raise ValueError(
                f"Invalid refresh_interval: {self.refresh_interval}. "
                "Must be between 0 and 86400"
            )
        if not self.status_bar_text:
            raise ValueError("status_bar_text must not be empty")

    @staticmethod
    def from_dict(data: dict[str, Any]) -> DisplayPreferences:
        """Create DisplayPreferences from dictionary."""
        return DisplayPreferences(
            show_in_status_bar=data.get("show_in_status_bar", True),
            status_bar_text=data.get("status_bar_text", DEFAULT_STATUS_TEXT),
            refresh_interval=data.get("refresh_interval", 0),
        )


@dataclass(frozen=True)
class SwitchPreferences:
    """
    Switch orchestration settings.

    Attributes:
        settle_delay_seconds: Wait after the switch command before verifying
        verify_timeout_seconds: How long verification keeps polling
        verify_interval_seconds: Delay between verification attempts
        nvm_windows_bare_version: Strip the "v" for nvm-windows commands
        preferred_manager: Manager used when several are available
    """
    settle_delay_seconds: float = 2.0
    verify_timeout_seconds: float = 5.0
    verify_interval_seconds: float = 1.0
    nvm_windows_bare_version: bool = True
    preferred_manager: str | None = None

    def __post_init__(self):
        if self.settle_delay_seconds < 0 or self.settle_delay_seconds > 30:
            raise ValueError(
                f"Invalid settle_delay_seconds: {self.settle_delay_seconds}. "
                "Must be between 0 and 30"
            )
        if self.verify_timeout_seconds < 0 or self.verify_timeout_seconds > 60:
            raise ValueError(
                f"Invalid verify_timeout_seconds: {self.verify_timeout_seconds}. "
                "Must be between 0 and 60"
            )
        if self.verify_interval_seconds <= 0 or self.verify_interval_seconds > 30:
            raise ValueError(
                f"Invalid verify_interval_seconds: {self.verify_interval_seconds}. "
                "Must be greater than 0 and at most 30"
            )
        if self.preferred_manager is not None and self.preferred_manager not in KNOWN_MANAGERS:
            raise ValueError(
                f"Invalid preferred_manager: {self.preferred_manager}. "
                f"Must be one of: {', '.join(KNOWN_MANAGERS)}"
            )

    @staticmethod
    def from_dict(data: dict[str, Any]) -> SwitchPreferences:
        """Create SwitchPreferences from dictionary."""
        return SwitchPreferences(
            settle_delay_seconds=float(data.get("settle_delay_seconds", 2.0)),
            verify_timeout_seconds=float(data.get("verify_timeout_seconds", 5.0)),
            verify_interval_seconds=float(data.get("verify_interval_seconds", 1.0)),
            nvm_windows_bare_version=data.get("nvm_windows_bare_version", True),
            preferred_manager=data.get("preferred_manager"),
        )


@dataclass(frozen=True)
class Timeouts:
    """
    Command timeouts in seconds.

    Attributes:
        probe_seconds: Manager availability probes
        command_seconds: List, switch, install and resolver commands
    """
    probe_seconds: int = 3
    command_seconds: int = 30

    def __post_init__(self):
        if self.probe_seconds < 1 or self.probe_seconds > 60:
            raise ValueError(
                f"Invalid probe_seconds: {self.probe_seconds}. Must be between 1 and 60"
            )
        if self.command_seconds < 1 or self.command_seconds > 600:
            raise ValueError(
                f"Invalid command_seconds: {self.command_seconds}. Must be between 1 and 600"
            )

    @staticmethod
    def from_dict(data: dict[str, Any]) -> Timeouts:
        """Create Timeouts from dictionary."""
        return Timeouts(
            probe_seconds=data.get("probe_seconds", 3),
            command_seconds=data.get("command_seconds", 30),
        )


@dataclass(frozen=True)
class Config:
    """
    Complete configuration for node-switch.

    Attributes:
        version: Config schema version
        display: Status presentation settings
        switch: Switch orchestration settings
        timeouts: Command timeouts
        managers: Enabled managers, in probe order
        source: Path to the configuration file that was loaded
    """
    version: int = 1
    display: DisplayPreferences = field(default_factory=DisplayPreferences)
    switch: SwitchPreferences = field(default_factory=SwitchPreferences)
    timeouts: Timeouts = field(default_factory=Timeouts)
    managers: tuple[str, ...] = KNOWN_MANAGERS
    source: str = ""

    def __post_init__(self):
        if self.version != 1:
            raise ValueError(f"Unsupported config version: {self.version}. Expected version 1")

    @staticmethod
    def from_dict(data: dict[str, Any], source: str = "") -> Config:
        """Create Config from dictionary."""
        managers = data.get("managers")
        if isinstance(managers, str):
            managers = [managers]
        elif managers is not None and not isinstance(managers, (list, tuple)):
            raise ValueError(
                f"Invalid managers: {managers!r}. Must be a list of manager names"
            )
        return Config(
            version=data.get("version", 1),
            display=DisplayPreferences.from_dict(data.get("display") or {}),
            switch=SwitchPreferences.from_dict(data.get("switch") or {}),
            timeouts=Timeouts.from_dict(data.get("timeouts") or {}),
            managers=tuple(managers) if managers is not None else KNOWN_MANAGERS,
            source=source,
        )

    def merge_with(self, other: Config) -> Config:
        """
        Merge this config with another, preferring values from this config.

        A value equal to its default counts as unset and falls back to ``other``.

        Args:
            other: Other config to merge (lower priority)

        Returns:
            New merged Config object
        """
        default_display = DisplayPreferences()
        default_switch = SwitchPreferences()
        default_timeouts = Timeouts()

        def pick(mine: Any, theirs: Any, default: Any) -> Any:
            return mine if mine != default else theirs

        display = DisplayPreferences(
            show_in_status_bar=pick(
                self.display.show_in_status_bar,
                other.display.show_in_status_bar,
                default_display.show_in_status_bar,
            ),
            status_bar_text=pick(
                self.display.status_bar_text,
                other.display.status_bar_text,
                default_display.status_bar_text,
            ),
            refresh_interval=pick(
                self.display.refresh_interval,
                other.display.refresh_interval,
                default_display.refresh_interval,
            ),
        )
        switch = SwitchPreferences(
            settle_delay_seconds=pick(
                self.switch.settle_delay_seconds,
                other.switch.settle_delay_seconds,
                default_switch.settle_delay_seconds,
            ),
            verify_timeout_seconds=pick(
                self.switch.verify_timeout_seconds,
                other.switch.verify_timeout_seconds,
                default_switch.verify_timeout_seconds,
            ),
            verify_interval_seconds=pick(
                self.switch.verify_interval_seconds,
                other.switch.verify_interval_seconds,
                default_switch.verify_interval_seconds,
            ),
            nvm_windows_bare_version=pick(
                self.switch.nvm_windows_bare_version,
                other.switch.nvm_windows_bare_version,
                default_switch.nvm_windows_bare_version,
            ),
            preferred_manager=self.switch.preferred_manager or other.switch.preferred_manager,
        )
        timeouts = Timeouts(
            probe_seconds=pick(
                self.timeouts.probe_seconds,
                other.timeouts.probe_seconds,
                default_timeouts.probe_seconds,
            ),
            command_seconds=pick(
                self.timeouts.command_seconds,
                other.timeouts.command_seconds,
                default_timeouts.command_seconds,
            ),
        )

        return Config(
            version=self.version,
            display=display,
            switch=switch,
            timeouts=timeouts,
            managers=pick(self.managers, other.managers, KNOWN_MANAGERS),
            source=self.source or other.source,
        )


def _load_yaml(file_path: str) -> dict[str, Any] | None:
    """
    Load YAML configuration file.

    Returns:
        Parsed configuration dictionary, or None if the file is unreadable or invalid
    """
    try:
        with open(file_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
            return data if isinstance(data, dict) else {}
    except (OSError, yaml.YAMLError):
        return None


def _load_json(file_path: str) -> dict[str, Any] | None:
    """
    Load JSON configuration file.

    Returns:
        Parsed configuration dictionary, or None if file invalid
    """
    try:
        with open(file_path, "r", encoding="utf-8") as f:
            data = json.load(f)
            return data if isinstance(data, dict) else {}
    except (OSError, json.JSONDecodeError):
        return None


def load_config_file(file_path: str, verbose: bool = False) -> Config | None:
    """
    Load configuration from a single file.

    ``.json`` files are read as JSON, everything else as YAML.

    Args:
        file_path: Path to configuration file
        verbose: Enable verbose logging

    Returns:
        Config object, or None if file cannot be loaded
    """
    if not os.path.exists(file_path):
        return None

    vlog(f"Loading config from: {file_path}", verbose)

    if Path(file_path).suffix == ".json":
        data = _load_json(file_path)
    else:
        data = _load_yaml(file_path)

    if data is None:
        vlog(f"Invalid config file: {file_path}", verbose)
        return None

    try:
        config = Config.from_dict(data, source=file_path)
        vlog(f"Loaded config successfully: {file_path}", verbose)
        return config
    except (ValueError, TypeError) as e:
        vlog(f"Config validation failed for {file_path}: {e}", verbose)
        return None


def load_config(
    custom_path: str | None = None,
    verbose: bool = False,
) -> Config:
    """
    Load and merge configuration from all sources.

    Configuration precedence (highest to lowest):
    1. Custom path (if provided)
    2. Project .node-switch.yml
    3. User ~/.config/node-switch/config.yml
    4. System /etc/node-switch/config.yml
    5. Default configuration

    Args:
        custom_path: Optional path to custom configuration file
        verbose: Enable verbose logging

    Returns:
        Merged Config object (never None, returns defaults if no config found)

    Raises:
        ValueError: If custom_path is provided but file cannot be loaded
    """
    configs: list[Config] = []

    if custom_path:
        config = load_config_file(custom_path, verbose)
        if config is None:
            raise ValueError(f"Could not load config from specified path: {custom_path}")
        configs.append(config)

    for location in CONFIG_LOCATIONS:
        config = load_config_file(location, verbose)
        if config is not None:
            configs.append(config)

    if not configs:
        vlog("No config files found, using defaults", verbose)
        return Config()

    merged = configs[0]
    for config in configs[1:]:
        merged = merged.merge_with(config)

    vlog(f"Merged {len(configs)} config files", verbose)
    return merged


def validate_config(config: Config) -> list[str]:
    """
    Validate configuration and return list of warnings.

    Args:
        config: Config object to validate

    Returns:
        List of validation warning messages (empty if valid)
    """
    warnings = []

    unknown = [name for name in config.managers if name not in KNOWN_MANAGERS]
    if unknown:
        warnings.append(f"Unknown managers ignored: {', '.join(unknown)}")
    if len(config.managers) != len(set(config.managers)):
        warnings.append("Duplicate entries in managers list")
    if not config.managers:
        warnings.append("Empty managers list; no version manager will be probed")

    if "{version}" not in config.display.status_bar_text:
        warnings.append(
            f"status_bar_text has no {{version}} placeholder: {config.display.status_bar_text!r}"
        )

    preferred = config.switch.preferred_manager
    if preferred and preferred not in config.managers:
        warnings.append(f"preferred_manager '{preferred}' is not in the enabled managers list")

    return warnings
