"""execute_command — runs a host command with a bounded timeout.

Commands run directly on the host with NO isolation; every call is logged at
warning level.  The command string is split with :func:`shlex.split` and
executed without a shell.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import shlex
from typing import Any

from pydantic import BaseModel, Field

from toolwire.protocol.errors import ArgumentValidationError

logger = logging.getLogger(__name__)

MIN_TIMEOUT = 1
MAX_TIMEOUT = 300
DEFAULT_TIMEOUT = 30

EXECUTE_COMMAND_SCHEMA: dict[str, Any] = {
    "properties": {
        "command": {"type": "string", "description": "Command to execute"},
        "working_dir": {"type": "string", "description": "Working directory for the command"},
        "timeout": {
            "type": "integer",
            "description": "Command timeout in seconds (default: 30)",
            "default": DEFAULT_TIMEOUT,
            "minimum": MIN_TIMEOUT,
            "maximum": MAX_TIMEOUT,
        },
    },
    "required": ["command"],
}


class CommandResult(BaseModel):
    """Outcome of one host command."""

    command: str
    exit_code: int = Field(..., description="Process exit code (-1 when killed on timeout).")
    stdout: str = ""
    stderr: str = ""
    timed_out: bool = False

    @property
    def success(self) -> bool:
        return self.exit_code == 0 and not self.timed_out

    def to_payload(self) -> dict[str, Any]:
        return {**self.model_dump(), "success": self.success}


async def run_command(command: str, *, working_dir: str | None = None, timeout: float = DEFAULT_TIMEOUT) -> CommandResult:
    """Run *command* on the host; kill it if it outlives *timeout*."""
    argv = shlex.split(command)
    if not argv:
        raise ArgumentValidationError("command must not be empty", field="command")
    logger.warning("execute_command: running %s on host (UNSANDBOXED)", argv)

    proc = await asyncio.create_subprocess_exec(
        *argv,
        stdin=asyncio.subprocess.DEVNULL,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
        cwd=working_dir,
    )
    try:
        stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout)
    except TimeoutError:
        _kill(proc)
        stdout, stderr = await proc.communicate()
        logger.warning("execute_command: %s killed after %ss", argv[0], timeout)
        return CommandResult(
            command=command,
            exit_code=-1,
            stdout=stdout.decode(errors="replace") if stdout else "",
            stderr=stderr.decode(errors="replace") if stderr else "",
            timed_out=True,
        )
    except asyncio.CancelledError:
        _kill(proc)
        await proc.wait()
        logger.warning("execute_command: %s killed on cancellation", argv[0])
        raise

    return CommandResult(
        command=command,
        exit_code=proc.returncode if proc.returncode is not None else -1,
        stdout=stdout.decode(errors="replace") if stdout else "",
        stderr=stderr.decode(errors="replace") if stderr else "",
    )


def _kill(proc: asyncio.subprocess.Process) -> None:
    if proc.returncode is None:
        with contextlib.suppress(ProcessLookupError):
            proc.kill()


async def execute_command(args: dict[str, Any]) -> dict[str, Any]:
    timeout = args.get("timeout", DEFAULT_TIMEOUT)
    if not MIN_TIMEOUT <= timeout <= MAX_TIMEOUT:
        raise ArgumentValidationError(
            f"timeout must be between {MIN_TIMEOUT} and {MAX_TIMEOUT} seconds",
            field="timeout",
        )
    result = await run_command(args["command"], working_dir=args.get("working_dir"), timeout=timeout)
    return result.to_payload()
