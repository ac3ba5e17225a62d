"""Process execution for netbird commands."""

import asyncio
import contextlib
from typing import List, Optional, Sequence

from .models import CommandResult
from ..logging_utility import logger

CANCELLED_MESSAGE = "Operation was cancelled"
SECRET_OPTIONS = ("--setup-key", "--preshared-key")


def format_command(cmd: Sequence[str]) -> str:
    """Join argv for logging with secret values masked."""
    masked: List[str] = []
    hide_next = False
    for arg in cmd:
        masked.append("****" if hide_next else arg)
        hide_next = arg in SECRET_OPTIONS
    return " ".join(masked)


def _decode(stream: Optional[bytes]) -> str:
    return stream.decode("utf-8", errors="replace") if stream else ""


def _kill(process: asyncio.subprocess.Process) -> None:
    with contextlib.suppress(ProcessLookupError):
        process.kill()


def _to_result(process: asyncio.subprocess.Process, stdout: Optional[bytes],
               stderr: Optional[bytes], binary: str) -> CommandResult:
    output = _decode(stdout)
    error = _decode(stderr) or None
    success = process.returncode == 0
    if not success and error is None:
        error = f"{binary} exited with status {process.returncode}"
    return CommandResult(success=success, output=output, error=error)


async def _spawn(cmd: Sequence[str]) -> asyncio.subprocess.Process:
    return await asyncio.create_subprocess_exec(
        *cmd,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )


class CommandExecutor:
    """Runs netbird invocations and tracks the most recent one for cancel()."""

    def __init__(self):
        self._current: Optional[asyncio.Future] = None

    async def execute(self, cmd: Sequence[str]) -> CommandResult:
        """
        Run one command.

        A new call takes over the cancellation slot; the previous call keeps
        running and still resolves on its own.

        Returns:
            CommandResult, never raises for process or I/O failures
        """
        logger.debug(f"Running: {format_command(cmd)}")
        try:
            process = await _spawn(cmd)
        except (OSError, ValueError) as e:
            # ValueError: argv with an embedded NUL byte
            logger.error(f"Failed to start {cmd[0]}: {e}")
            return CommandResult(success=False, output="", error=str(e) or type(e).__name__)

        communicate = asyncio.ensure_future(process.communicate())
        self._current = communicate
        try:
            stdout, stderr = await asyncio.shield(communicate)
        except asyncio.CancelledError:
            _kill(process)
            if not communicate.cancelled():
                # the caller itself was cancelled
                communicate.cancel()
                raise
            await process.wait()
            logger.info(f"Cancelled: {format_command(cmd)}")
            return CommandResult(success=False, output="", error=CANCELLED_MESSAGE)
        except OSError as e:
            _kill(process)
            logger.error(f"I/O error while running {cmd[0]}: {e}")
            return CommandResult(success=False, output="", error=str(e) or type(e).__name__)
        finally:
            if self._current is communicate:
                self._current = None

        return _to_result(process, stdout, stderr, cmd[0])

    def cancel(self) -> None:
        """Stop waiting for the most recent in-flight command, if any."""
        if self._current is not None and not self._current.done():
            self._current.cancel()
        self._current = None
