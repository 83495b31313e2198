"""
Shared fixtures: a scripted command runner standing in for real shells.
"""

from __future__ import annotations

import pytest

from node_switch.runner import CommandError, CommandResult


def ok(command: str, stdout: str = "") -> CommandResult:
    return CommandResult(command, stdout=stdout)


def fail(command: str, kind: str = "non_zero_exit", message: str = "boom", exit_code: int | None = 1) -> CommandResult:
    return CommandResult(command, error=CommandError(kind, message, exit_code=exit_code))


class FakeRunner:
    """
    Async stand-in for ``node_switch.runner.run``.

    Responses are keyed by exact command line. A list value is consumed one
    entry per call, repeating the last entry once exhausted. Unknown
    commands fail as 'not_found'.
    """

    def __init__(self, responses=None):
        self.responses = {}
        self.calls = []
        for command, response in (responses or {}).items():
            self.set(command, response)

    def set(self, command, response):
        """Script a response: stdout string, CommandResult, or a list of either."""
        items = response if isinstance(response, list) else [response]
        self.responses[command] = [self._to_result(command, item) for item in items]

    @staticmethod
    def _to_result(command, item):
        if isinstance(item, CommandResult):
            return item
        return ok(command, item)

    async def __call__(self, command_line, cwd=None, timeout=None):
        self.calls.append((command_line, cwd, timeout))
        queue = self.responses.get(command_line)
        if not queue:
            return fail(command_line, "not_found", f"{command_line}: command not found", 127)
        if len(queue) > 1:
            return queue.pop(0)
        return queue[0]

    def commands(self):
        return [c[0] for c in self.calls]


class FakeSleep:
    """Records requested delays without waiting."""

    def __init__(self):
        self.delays = []

    async def __call__(self, seconds):
        self.delays.append(seconds)


@pytest.fixture
def fake_runner():
    return FakeRunner()


@pytest.fixture
def fake_sleep():
    return FakeSleep()
