"""
node-switch - Node.js version tracking and switching via nvm, fnm or volta.

Core Modules:
- Execution: shell command runner with platform wrapping
- Managers: registry, detection and selection of version managers
- Catalog: per-manager line parsing and the unified version catalog
- Switching: switch orchestration with verification, installs
- Resolution: current Node.js version lookup
"""

__version__ = "1.0.0"

VERSION = __version__

# Execution
from .runner import CommandError, CommandResult, run, wrap_for_platform
from .environment import Environment, detect_environment, find_workspace_root

# Managers
from .managers import (
    MANAGERS,
    DetectedManager,
    ManagerDescriptor,
    ManagerSelectionError,
    detect_available_managers,
    get_manager,
    select_manager,
)

# Catalog
from .parsers import VersionRecord, normalize_version, parse_line, version_key
from .catalog import VersionCatalog, build_catalog

# Switching
from .switcher import (
    Confirmed,
    ExecutedUnconfirmed,
    Failed,
    InstallResult,
    SwitchOutcome,
    install_version,
    switch_to,
)

# Resolution
from .resolver import resolve_current_version

# Facade and configuration
from .service import NodeVersionService
from .config import Config, load_config, validate_config
from .logging_config import setup_logging, get_logger

__all__ = [
    # Version
    "__version__",
    "VERSION",
    # Execution
    "CommandError",
    "CommandResult",
    "run",
    "wrap_for_platform",
    "Environment",
    "detect_environment",
    "find_workspace_root",
    # Managers
    "MANAGERS",
    "DetectedManager",
    "ManagerDescriptor",
    "ManagerSelectionError",
    "detect_available_managers",
    "get_manager",
    "select_manager",
    # Catalog
    "VersionRecord",
    "normalize_version",
    "parse_line",
    "version_key",
    "VersionCatalog",
    "build_catalog",
    # Switching
    "Confirmed",
    "ExecutedUnconfirmed",
    "Failed",
    "InstallResult",
    "SwitchOutcome",
    "install_version",
    "switch_to",
    # Resolution
    "resolve_current_version",
    # Facade and configuration
    "NodeVersionService",
    "Config",
    "load_config",
    "validate_config",
    # Logging
    "setup_logging",
    "get_logger",
]
