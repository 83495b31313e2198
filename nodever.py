#!/usr/bin/env python3
"""
node-switch - Show and switch the active Node.js version.

Delegates installing and switching to whichever of nvm, fnm or volta is
installed.

Usage:
    nodever.py current            # Show the active Node.js version
    nodever.py list               # List installed versions across managers
    nodever.py managers           # Show detected version managers
    nodever.py use 18.17.0        # Switch versions and verify
    nodever.py install 20.5.0     # Install a version
    nodever.py watch              # Keep printing the version as it changes
"""

from __future__ import annotations

import argparse
import asyncio
import json
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from node_switch.config import Config, load_config, validate_config
from node_switch.environment import detect_environment
from node_switch.logging_config import setup_logging, get_logger
from node_switch.render import (
    STATE_OK,
    format_install,
    format_outcome,
    format_status,
    render_catalog,
    render_managers,
)
from node_switch.service import NodeVersionService
from node_switch.switcher import Failed


def build_service(args: argparse.Namespace) -> NodeVersionService:
    """Load configuration and environment for a command invocation."""
    if args.no_config and not args.config:
        config = Config()
    else:
        config = load_config(args.config, verbose=args.verbose)
    for warning in validate_config(config):
        get_logger().warning(f"config: {warning}")
    environment = detect_environment(override=args.platform, cwd=args.cwd, verbose=args.verbose)
    return NodeVersionService(config=config, environment=environment, verbose=args.verbose)


def cmd_current(args: argparse.Namespace) -> int:
    """Print the active Node.js version using the configured template."""
    service = build_service(args)
    version = asyncio.run(service.current_version())

    if args.json:
        print(json.dumps({"version": version, "found": version is not None}))
        return 0 if version else 1

    display = service.config.display
    state, text, tooltip = format_status(version, display.status_bar_text)
    if display.show_in_status_bar or state != STATE_OK:
        print(text)
    if args.verbose:
        print(f"# {tooltip}", file=sys.stderr)
    return 0 if state == STATE_OK else 1


def cmd_list(args: argparse.Namespace) -> int:
    """List installed versions across all detected managers."""
    service = build_service(args)

    async def gather():
        return await asyncio.gather(service.list_versions(), service.current_version())

    catalog, current = asyncio.run(gather())

    if args.json:
        data = catalog.to_dict()
        data["current"] = current
        print(json.dumps(data, indent=2, ensure_ascii=False))
        return 0

    render_catalog(catalog, current)
    return 0


def cmd_managers(args: argparse.Namespace) -> int:
    """Show version managers that are installed and invocable."""
    service = build_service(args)
    detected = asyncio.run(service.managers())

    if args.json:
        print(json.dumps([m.to_dict() for m in detected], indent=2, ensure_ascii=False))
        return 0

    render_managers(detected)
    return 0 if detected else 1


def cmd_use(args: argparse.Namespace) -> int:
    """Switch to an installed version and report whether it took effect."""
    service = build_service(args)
    outcome = asyncio.run(service.switch(args.version, manager=args.manager))

    if args.json:
        print(json.dumps(outcome.to_dict(), indent=2, ensure_ascii=False))
    else:
        print(format_outcome(outcome))
    return 1 if isinstance(outcome, Failed) else 0


def cmd_install(args: argparse.Namespace) -> int:
    """Install a version through a version manager."""
    service = build_service(args)
    result = asyncio.run(service.install(args.version, manager=args.manager))

    if args.json:
        print(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
    else:
        print(format_install(result))
    return 0 if result.success else 1


async def watch(service: NodeVersionService, interval: int, iterations: int | None = None) -> None:
    """
    Print the status line whenever the resolved version changes.

    Args:
        service: Service to query
        interval: Seconds between refreshes; 0 refreshes once
        iterations: Stop after this many refreshes (None runs until interrupted)
    """
    template = service.config.display.status_bar_text
    last = None
    count = 0
    while True:
        try:
            version = await service.current_version()
            _state, text, _tooltip = format_status(version, template)
        except Exception as e:
            get_logger().error(f"Failed to get Node.js version: {e}")
            _state, text, _tooltip = format_status(None, template, error_message=str(e))

        if text != last:
            print(text, flush=True)
            last = text

        count += 1
        if interval <= 0 or (iterations is not None and count >= iterations):
            return
        await service.sleep(interval)


def cmd_watch(args: argparse.Namespace) -> int:
    """Refresh the status line periodically."""
    service = build_service(args)
    interval = args.interval if args.interval is not None else service.config.display.refresh_interval
    try:
        asyncio.run(watch(service, interval))
    except KeyboardInterrupt:
        pass
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="node-switch",
        description="Show and switch the active Node.js version via nvm, fnm or volta",
    )
    parser.add_argument("--config", help="Path to a configuration file")
    parser.add_argument("--no-config", action="store_true", help="Ignore configuration files")
    parser.add_argument("--cwd", help="Directory used to locate the project (package.json)")
    parser.add_argument(
        "--platform",
        choices=("auto", "windows", "macos", "linux"),
        default="auto",
        help="Override platform detection for command rendering",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")
    parser.add_argument("-q", "--quiet", action="store_true", help="Only log warnings and errors")
    parser.add_argument("--log-file", help="Also write a debug log to this file")

    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")

    p = subparsers.add_parser("current", help="Show the active Node.js version")
    p.add_argument("--json", action="store_true", help="Output JSON")
    p.set_defaults(func=cmd_current)

    p = subparsers.add_parser("list", help="List installed Node.js versions")
    p.add_argument("--json", action="store_true", help="Output JSON")
    p.set_defaults(func=cmd_list)

    p = subparsers.add_parser("managers", help="Show detected version managers")
    p.add_argument("--json", action="store_true", help="Output JSON")
    p.set_defaults(func=cmd_managers)

    p = subparsers.add_parser("use", help="Switch to an installed version")
    p.add_argument("version", help="Version to switch to (e.g. 18.17.0 or v18.17.0)")
    p.add_argument("--manager", choices=("nvm", "fnm", "volta"), help="Use this manager's listing")
    p.add_argument("--json", action="store_true", help="Output JSON")
    p.set_defaults(func=cmd_use)

    p = subparsers.add_parser("install", help="Install a Node.js version")
    p.add_argument("version", help="Version to install")
    p.add_argument("--manager", choices=("nvm", "fnm", "volta"), help="Manager to install with")
    p.add_argument("--json", action="store_true", help="Output JSON")
    p.set_defaults(func=cmd_install)

    p = subparsers.add_parser("watch", help="Print the version whenever it changes")
    p.add_argument("--interval", type=int, help="Refresh interval in seconds (default: config)")
    p.set_defaults(func=cmd_watch)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.command:
        args.command = "current"
        args.json = False
        args.func = cmd_current

    setup_logging(verbose=args.verbose, quiet=args.quiet, log_file=args.log_file)

    try:
        return args.func(args)
    except ValueError as e:
        get_logger().error(str(e))
        return 2


if __name__ == "__main__":
    sys.exit(main())
