"""
Current Node.js runtime resolution, independent of any version manager.
"""

from __future__ import annotations

import logging
import os

from .runner import Runner, run


logger = logging.getLogger(__name__)

NODE_VERSION_COMMAND = "node --version"
NPX_NODE_VERSION_COMMAND = "npx node --version"
RESOLVE_TIMEOUT_SECONDS = 10.0


async def resolve_current_version(
    workspace_root: str | os.PathLike[str] | None = None,
    timeout: float = RESOLVE_TIMEOUT_SECONDS,
    runner: Runner = run,
) -> str | None:
    """
    Determine the active Node.js version.

    Tries ``node --version`` first. If that fails and a workspace root is
    known, retries through ``npx node --version`` inside that directory.

    Args:
        workspace_root: Project directory for the npx fallback
        timeout: Timeout for each attempt
        runner: Command runner

    Returns:
        Version string such as "v18.17.0", or None when Node.js cannot be
        found by either path (an expected state, not an error)
    """
    result = await runner(NODE_VERSION_COMMAND, timeout=timeout)
    version = result.stdout.strip() if result.success else ""
    if version:
        return version
    logger.debug(f"{NODE_VERSION_COMMAND} failed: {result.error}")

    if workspace_root is None:
        return None

    result = await runner(NPX_NODE_VERSION_COMMAND, cwd=workspace_root, timeout=timeout)
    version = result.stdout.strip() if result.success else ""
    if version:
        return version
    logger.debug(f"{NPX_NODE_VERSION_COMMAND} failed in {workspace_root}: {result.error}")
    return None
