"""
Shell command execution with captured output.

Commands run through the platform's native shell. Failures never raise
past this module: every outcome is returned as a CommandResult carrying
either stdout or a CommandError.
"""

from __future__ import annotations

import asyncio
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Awaitable, Protocol


logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30.0

# Shell exit statuses meaning "command not found"
NOT_FOUND_EXIT_CODES = {127, 9009}
NOT_FOUND_MARKERS = (
    "command not found",
    "is not recognized as an internal or external command",
)

ERROR_NON_ZERO_EXIT = "non_zero_exit"
ERROR_NOT_FOUND = "not_found"
ERROR_TIMEOUT = "timeout"
ERROR_OS = "os_error"

# Managers that are batch-script wrappers on Windows and need cmd.exe
CMD_WRAPPED_MANAGERS = frozenset({"nvm"})


@dataclass(frozen=True)
class CommandError:
    """
    Failure of a single command invocation.

    Attributes:
        kind: One of 'non_zero_exit', 'not_found', 'timeout', 'os_error'
        raw_message: stderr text or exception message
        exit_code: Process exit code, if the process ran to completion
    """
    kind: str
    raw_message: str
    exit_code: int | None = None

    def __str__(self) -> str:
        message = self.raw_message.strip() or "no output"
        if self.exit_code is not None:
            return f"{self.kind} (exit {self.exit_code}): {message}"
        return f"{self.kind}: {message}"


@dataclass(frozen=True)
class CommandResult:
    """
    Outcome of running a command line.

    Attributes:
        command: The command line that was run
        stdout: Captured standard output (empty on failure)
        error: CommandError on failure, None on success
    """
    command: str
    stdout: str = ""
    error: CommandError | None = None

    @property
    def success(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "command": self.command,
            "success": self.success,
            "stdout": self.stdout,
            "error": None if self.error is None else {
                "kind": self.error.kind,
                "raw_message": self.error.raw_message,
                "exit_code": self.error.exit_code,
            },
        }


class Runner(Protocol):
    """Callable signature shared by ``run`` and test doubles."""

    def __call__(
        self,
        command_line: str,
        cwd: str | os.PathLike[str] | None = None,
        timeout: float | None = None,
    ) -> Awaitable[CommandResult]:
        ...


def wrap_for_platform(command_line: str, manager_name: str | None, platform: str) -> str:
    """
    Apply manager-specific shell wrapping for the target platform.

    nvm-for-Windows is a batch wrapper that only behaves under cmd.exe,
    so its commands become ``cmd /c "<command>"`` on Windows.

    Args:
        command_line: Command to wrap
        manager_name: Owning manager name, or None for plain commands
        platform: Platform family ('windows', 'macos', 'linux')

    Returns:
        Command line ready to hand to ``run``
    """
    if platform == "windows" and manager_name in CMD_WRAPPED_MANAGERS:
        return f'cmd /c "{command_line}"'
    return command_line


def _classify_failure(exit_code: int, stderr: str) -> str:
    if exit_code in NOT_FOUND_EXIT_CODES:
        return ERROR_NOT_FOUND
    lowered = stderr.lower()
    if any(marker in lowered for marker in NOT_FOUND_MARKERS):
        return ERROR_NOT_FOUND
    return ERROR_NON_ZERO_EXIT


async def run(
    command_line: str,
    cwd: str | os.PathLike[str] | None = None,
    timeout: float | None = None,
) -> CommandResult:
    """
    Run a command line through the native shell and capture stdout.

    Args:
        command_line: Full command line (already platform-wrapped)
        cwd: Working directory
        timeout: Timeout in seconds (default: DEFAULT_TIMEOUT_SECONDS)

    Returns:
        CommandResult with stdout on success or a CommandError on failure.
        A timed-out process is killed and reported as kind 'timeout'.
    """
    effective_timeout = timeout if timeout is not None else DEFAULT_TIMEOUT_SECONDS
    logger.debug(f"Executing: {command_line}")
    if cwd:
        logger.debug(f"Working directory: {cwd}")

    try:
        process = await asyncio.create_subprocess_shell(
            command_line,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            stdin=asyncio.subprocess.DEVNULL,
            cwd=str(Path(cwd)) if cwd else None,
            env={**os.environ, "TERM": "dumb", "NO_COLOR": "1"},
        )
    except FileNotFoundError as e:
        logger.debug(f"Command could not start: {command_line} - {e}")
        return CommandResult(command_line, error=CommandError(ERROR_NOT_FOUND, str(e)))
    except OSError as e:
        logger.debug(f"Command could not start: {command_line} - {e}")
        return CommandResult(command_line, error=CommandError(ERROR_OS, str(e)))

    try:
        stdout_bytes, stderr_bytes = await asyncio.wait_for(
            process.communicate(), timeout=effective_timeout
        )
    except asyncio.TimeoutError:
        logger.debug(f"Command timeout after {effective_timeout}s: {command_line}")
        try:
            process.kill()
        except ProcessLookupError:
            pass
        await process.wait()
        return CommandResult(
            command_line,
            error=CommandError(ERROR_TIMEOUT, f"timed out after {effective_timeout}s"),
        )
    except asyncio.CancelledError:
        logger.debug(f"Command cancelled: {command_line}")
        try:
            process.kill()
        except ProcessLookupError:
            pass
        raise

    stdout = stdout_bytes.decode("utf-8", errors="replace") if stdout_bytes else ""
    stderr = stderr_bytes.decode("utf-8", errors="replace") if stderr_bytes else ""
    if stdout:
        logger.debug(f"stdout: {stdout.rstrip()}")
    if stderr:
        logger.debug(f"stderr: {stderr.rstrip()}")

    exit_code = process.returncode
    if exit_code:
        kind = _classify_failure(exit_code, stderr)
        return CommandResult(
            command_line,
            error=CommandError(kind, stderr or stdout, exit_code=exit_code),
        )

    return CommandResult(command_line, stdout=stdout)
