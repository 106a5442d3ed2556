"""Async subprocess runner with output caps and wall-clock timeouts."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import cast

from mp3grab.errors import ExternalProcessError

logger = logging.getLogger(__name__)

_READ_CHUNK_BYTES = 64 * 1024
_DIAGNOSTIC_MAX_CHARS = 300

@dataclass
class ProcessResult:
    """Captured outcome of a finished process."""

    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0


async def _collect(stream: asyncio.StreamReader, limit: int, label: str) -> bytes:
    buf = bytearray()
    while True:
        chunk = await stream.read(_READ_CHUNK_BYTES)
        if not chunk:
            return bytes(buf)
        buf.extend(chunk)
        if len(buf) > limit:
            raise ExternalProcessError(f"{label} output exceeded {limit} bytes")


async def _kill(proc: asyncio.subprocess.Process) -> None:
    if proc.returncode is not None:
        return
    try:
        proc.kill()
    except ProcessLookupError:
        return
    await proc.wait()


async def run_process(
    cmd: list[str],
    *,
    max_buffer_bytes: int,
    timeout: float | None = None,
) -> ProcessResult:
    """Run an external command and capture its output.

    The child is killed if either output stream grows beyond
    ``max_buffer_bytes`` or if it runs longer than ``timeout`` seconds.
    A non-zero exit status is returned, not raised; callers decide what
    counts as failure.

    Args:
        cmd: Program and arguments (no shell).
        max_buffer_bytes: Cap applied separately to stdout and stderr.
        timeout: Optional wall-clock limit in seconds.

    Returns:
        ProcessResult with decoded stdout/stderr.

    Raises:
        ExternalProcessError: If the binary cannot be started, exceeds its
            output cap, or times out.
    """
    program = Path(cmd[0]).name
    logger.debug("Running: %s", " ".join(cmd))

    try:
        proc = await asyncio.create_subprocess_exec(
            *cmd,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as exc:
        raise ExternalProcessError(f"{program} could not be started: {exc}") from exc

    async def _communicate() -> tuple[bytes, bytes, int]:
        stdout, stderr = await asyncio.gather(
            _collect(cast(asyncio.StreamReader, proc.stdout), max_buffer_bytes, program),
            _collect(cast(asyncio.StreamReader, proc.stderr), max_buffer_bytes, program),
        )
        returncode = await proc.wait()
        return stdout, stderr, returncode

    try:
        if timeout is None:
            stdout, stderr, returncode = await _communicate()
        else:
            stdout, stderr, returncode = await asyncio.wait_for(_communicate(), timeout)
    except asyncio.TimeoutError:
        await _kill(proc)
        raise ExternalProcessError(
            f"{program} timed out after {timeout:g}s", timed_out=True
        ) from None
    except BaseException:
        await _kill(proc)
        raise

    return ProcessResult(
        returncode=returncode,
        stdout=stdout.decode("utf-8", errors="replace"),
        stderr=stderr.decode("utf-8", errors="replace"),
    )


def summarize_output(text: str, fallback: str = "no diagnostic output") -> str:
    """Return the last meaningful line of tool output, truncated."""
    lines = [line.strip() for line in text.splitlines() if line.strip()]
    if not lines:
        return fallback
    errors = [line for line in lines if line.upper().startswith("ERROR")]
    line = errors[-1] if errors else lines[-1]
    return line[:_DIAGNOSTIC_MAX_CHARS]
