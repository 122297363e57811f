"""
Asynchronous runner for external command-line tools.

The pipeline shells out to ``yt-dlp``, ``ffmpeg`` and ``whisper``.  This
module starts such a tool without a shell and without a controlling
terminal, waits for it cooperatively on the event loop, and captures its
output as text.  It knows nothing about pipeline stages: it only reports
how the process ended.

Usage::

    from whisper_pipeline.process_runner import run_process

    output = await run_process("ffmpeg", ["-version"], timeout=10)
    print(output.stdout)
"""

from __future__ import annotations

import asyncio
import logging
import os
import signal
import subprocess
import sys
from dataclasses import dataclass
from typing import Optional, Sequence

from .errors import ExecutionFailure, LaunchFailure, StageTimeout

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProcessOutput:
    exit_code: int
    stdout: str
    stderr: str


def _decode(data: Optional[bytes]) -> str:
    return (data or b"").decode("utf-8", errors="replace")


def _detach_kwargs() -> dict:
    # Keep the child away from our terminal: own session on POSIX, no console window on Windows.
    if sys.platform == "win32":
        return {"creationflags": subprocess.CREATE_NO_WINDOW}
    return {"start_new_session": True}


async def _drain(stream: Optional[asyncio.StreamReader], buf: bytearray) -> None:
    # Collect into ``buf`` as data arrives so a timeout keeps what was written so far.
    if stream is None:
        return
    while True:
        chunk = await stream.read(65536)
        if not chunk:
            return
        buf.extend(chunk)


async def _kill(proc: asyncio.subprocess.Process) -> None:
    """Kill ``proc`` and anything it spawned, then reap it.

    On POSIX the child leads its own session, so signalling the process group
    also stops helpers such as the ffmpeg that yt-dlp and whisper start.
    Those hold our pipes open, and ``wait()`` would block until they exit.
    """
    if sys.platform == "win32":
        if proc.returncode is None:
            try:
                proc.kill()
            except ProcessLookupError:
                pass
    else:
        try:
            os.killpg(proc.pid, signal.SIGKILL)
        except ProcessLookupError:
            pass
    await proc.wait()


async def run_process(
    executable: str,
    args: Sequence[str],
    *,
    cwd: Optional[str] = None,
    timeout: Optional[float] = None,
) -> ProcessOutput:
    """Run ``executable`` with ``args`` to completion.

    Args:
        executable: Name or path of the program, resolved against ``PATH``.
        args: Arguments passed verbatim (no shell interpretation).
        cwd: Working directory for the child process.
        timeout: Maximum run time in seconds; ``None`` waits indefinitely.

    Returns:
        The exit code and the captured standard output and error.

    Raises:
        LaunchFailure: If the program is missing or cannot be executed.
        ExecutionFailure: If the program exits with a non-zero status.
        StageTimeout: If ``timeout`` elapses; the child is killed first.
        asyncio.CancelledError: If the awaiting task is cancelled; the child
            is killed before the cancellation propagates.
    """
    logger.debug("Launching %s %s", executable, " ".join(args))
    try:
        proc = await asyncio.create_subprocess_exec(
            executable,
            *args,
            cwd=cwd,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            **_detach_kwargs(),
        )
    except OSError as exc:
        raise LaunchFailure(f"Could not start {executable}: {exc}", detail=str(exc)) from exc

    stdout, stderr = bytearray(), bytearray()
    try:
        await asyncio.wait_for(
            asyncio.gather(_drain(proc.stdout, stdout), _drain(proc.stderr, stderr), proc.wait()),
            timeout=timeout,
        )
    except asyncio.TimeoutError:
        await _kill(proc)
        raise StageTimeout(
            f"{executable} did not finish within {timeout:g}s and was killed",
            timeout=timeout,
            detail=_decode(bytes(stderr)).strip(),
        ) from None
    except asyncio.CancelledError:
        logger.info("Cancelled while waiting for %s (pid %s); killing it", executable, proc.pid)
        await _kill(proc)
        raise

    output = ProcessOutput(exit_code=proc.returncode, stdout=_decode(bytes(stdout)), stderr=_decode(bytes(stderr)))
    if output.exit_code != 0:
        raise ExecutionFailure(
            f"{executable} exited with status {output.exit_code}",
            exit_code=output.exit_code,
            detail=output.stderr.strip(),
        )
    return output
