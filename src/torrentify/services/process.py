"""Blocking external tool invocation, usable from async code."""

import asyncio
import functools
import logging
import subprocess

from ..error_handling import ExternalToolError

logger = logging.getLogger(__name__)


def run_tool(cmd: list[str], *, tool: str, timeout: int) -> str:
    """Run an external tool and return its stdout.

    Raises ExternalToolError when the executable is missing, times out or
    exits non-zero.
    """
    logger.debug("Running %s: %s", tool, " ".join(cmd))
    try:
        result = subprocess.run(
            cmd,
            check=False,
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except FileNotFoundError as e:
        raise ExternalToolError(
            tool,
            message=f"{tool} executable not found",
            recoverable=False,
            original_error=e,
        ) from e
    except subprocess.TimeoutExpired as e:
        raise ExternalToolError(
            tool,
            message=f"{tool} timed out after {timeout}s",
            solution=f"Increase the {tool} timeout in your configuration",
            original_error=e,
        ) from e

    if result.returncode != 0:
        stderr = (result.stderr or result.stdout or "").strip()
        raise ExternalToolError(
            tool,
            exit_code=result.returncode,
            stderr=stderr or None,
        )

    return result.stdout


async def run_tool_async(cmd: list[str], *, tool: str, timeout: int) -> str:
    """Run ``run_tool`` on the default executor so the event loop keeps going."""
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(
        None,
        functools.partial(run_tool, cmd, tool=tool, timeout=timeout),
    )
