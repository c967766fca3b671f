# src/conversion/process.py — v1
"""Bounded external-process execution for the conversion tools.

Every tool invocation goes through run_process(): it enforces a timeout,
kills the child on timeout or cancellation, and maps every failure to
ConversionError so the orchestrator can fall back.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

from markxiv.core.errors import ConversionError

logger = logging.getLogger(__name__)

_STDERR_TAIL_CHARS = 2000


@dataclass(frozen=True)
class ProcessResult:
    """Captured output of a successful process run."""

    returncode: int
    stdout: bytes
    stderr: bytes

    def text(self) -> str:
        return self.stdout.decode("utf-8", errors="replace")


async def run_process(
    argv: Sequence[str],
    *,
    cwd: Path | str | None = None,
    stdin: bytes | None = None,
    timeout: float = 120.0,
) -> ProcessResult:
    """Run argv to completion and return its output.

    Args:
        argv: Program and arguments.
        cwd: Working directory for the child.
        stdin: Bytes fed to the child's stdin (None = no stdin).
        timeout: Seconds before the child is killed.

    Returns:
        ProcessResult for a zero exit status.

    Raises:
        ConversionError: Missing binary, timeout or non-zero exit.
        asyncio.CancelledError: Propagated after the child is killed.
    """
    program = Path(argv[0]).name
    try:
        proc = await asyncio.create_subprocess_exec(
            *argv,
            cwd=str(cwd) if cwd is not None else None,
            stdin=asyncio.subprocess.PIPE if stdin is not None else asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as e:
        raise ConversionError(f"{program} could not be started: {e}") from e

    try:
        stdout, stderr = await asyncio.wait_for(proc.communicate(stdin), timeout=timeout)
    except asyncio.TimeoutError as e:
        await _kill(proc)
        raise ConversionError(f"{program} timed out after {timeout:g}s") from e
    except asyncio.CancelledError:
        await _kill(proc)
        raise

    if proc.returncode != 0:
        tail = stderr.decode("utf-8", errors="replace").strip()[-_STDERR_TAIL_CHARS:]
        logger.debug("%s exited with %s: %s", program, proc.returncode, tail)
        raise ConversionError(f"{program} exited with status {proc.returncode}: {tail}")

    return ProcessResult(returncode=proc.returncode, stdout=stdout, stderr=stderr)


async def _kill(proc: asyncio.subprocess.Process) -> None:
    """Kill a child that is still running and reap it."""
    if proc.returncode is None:
        with contextlib.suppress(ProcessLookupError):
            proc.kill()
    await proc.wait()
