"""Utility functions for running WireGuard tooling."""

import os
import signal
import subprocess
from typing import Callable, List, Optional, Tuple

from .exceptions import ProcessError
from ..logging_utility import logger

CommandResult = Tuple[Optional[int], str]
CommandRunner = Callable[[List[str], float], CommandResult]

# Grace period for collecting output once the process group is dead
DRAIN_TIMEOUT = 1.0


def _kill(process: subprocess.Popen) -> None:
    """SIGKILL the process and everything it spawned (wg-quick is a bash script)."""
    try:
        os.killpg(process.pid, signal.SIGKILL)
    except ProcessLookupError:
        pass
    except PermissionError:
        # process group may contain children we may not signal (e.g. under sudo)
        process.kill()


def _drain(process: subprocess.Popen, cmd: List[str]) -> Tuple[bytes, bytes]:
    """Collect output written before the kill and reap the child.

    A descendant outside the process group (setsid, sudo) can keep the pipes
    open; after DRAIN_TIMEOUT its output is abandoned.
    """
    try:
        return process.communicate(timeout=DRAIN_TIMEOUT)
    except subprocess.TimeoutExpired:
        logger.warning(f"Output of {cmd[0]} still held open after kill, discarding it")
        for stream in (process.stdout, process.stderr):
            stream.close()
        process.wait()
        return b"", b""


def run_with_timeout(cmd: List[str], timeout: float) -> CommandResult:
    """
    Run command, killing it if it outlives the timeout.

    Args:
        cmd: Command as list of strings
        timeout: Seconds to wait for the process to exit on its own

    Returns:
        Tuple of (exit code, stdout). The exit code is None when the process
        was terminated by a signal, which is the case after a timeout.
    """
    logger.debug(f"Running command: {' '.join(cmd)}")
    try:
        process = subprocess.Popen(
            cmd,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            start_new_session=True,
        )
    except OSError as e:
        raise ProcessError(f"Could not start {cmd[0]}: {e}") from e

    try:
        try:
            stdout, stderr = process.communicate(timeout=timeout)
        except subprocess.TimeoutExpired:
            logger.warning(f"Killing {' '.join(cmd)} after {timeout}s timeout")
            _kill(process)
            stdout, stderr = _drain(process, cmd)
    except OSError as e:
        raise ProcessError(f"Could not terminate {cmd[0]}: {e}") from e

    returncode = process.returncode
    status_code = returncode if returncode is not None and returncode >= 0 else None
    output = stdout.decode("utf-8", errors="replace")

    if stderr:
        logger.debug(f"{cmd[0]} stderr: {stderr.decode('utf-8', errors='replace').strip()}")
    logger.debug(f"Status code: {status_code}, output: {output!r}")
    return status_code, output
