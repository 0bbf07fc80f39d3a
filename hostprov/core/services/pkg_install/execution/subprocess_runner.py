"""
L4 Execution — Core subprocess runner.

The SINGLE PLACE where install and status subprocesses are spawned.
Every spawn goes through a shared ``CancelScope`` so one interrupt
cancels the whole batch, not just the running child.

There are no per-command timeouts: package manager operations (large
downloads, AUR builds) have unbounded duration. The only way a child
is stopped early is cancellation.

A child that cannot prompt (captured output, or no terminal on stdin)
runs in its own session, and cancellation signals its whole process
group so grandchildren (the curl under a URL install script) stop
too. Interactive children stay in the terminal's foreground group so
sudo can still ask for a password.
"""

from __future__ import annotations

import logging
import os
import signal
import subprocess
import sys
import threading
import time
from collections.abc import Sequence
from dataclasses import dataclass

logger = logging.getLogger(__name__)

# How often a running child is checked against its cancel scope
_POLL_INTERVAL = 0.1
# Seconds between SIGTERM and SIGKILL on cancellation
_TERMINATE_GRACE = 5.0


class CancelScope:
    """Shared cancellation flag for every subprocess of one run."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        if not self._event.is_set():
            logger.info("Cancellation requested")
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: float | None = None) -> bool:
        return self._event.wait(timeout)


@dataclass
class CommandResult:
    """Outcome of one subprocess."""

    returncode: int
    stdout: str = ""
    stderr: str = ""
    cancelled: bool = False
    error: str = ""       # spawn failure (binary missing, permission denied, ...)
    elapsed_ms: int = 0

    @property
    def ok(self) -> bool:
        return self.returncode == 0 and not self.cancelled and not self.error

    def describe_failure(self) -> str:
        """Short reason for a non-ok result."""
        if self.cancelled:
            return "Cancelled"
        if self.error:
            return self.error
        return f"exit status {self.returncode}"


def run_command(
    cmd: Sequence[str],
    *,
    scope: CancelScope | None = None,
    capture_output: bool = False,
    cwd: str | None = None,
) -> CommandResult:
    """Run a command to completion or cancellation.

    Args:
        cmd: argv list.
        scope: Cancel scope shared by the run. Checked before spawning
            and polled while the child runs.
        capture_output: Capture stdout/stderr instead of inheriting the
            parent's streams (status checks capture, installs inherit).
        cwd: Working directory for the child.

    Returns:
        A ``CommandResult``. Never raises for spawn or exit failures.
    """
    argv = list(cmd)
    if scope is not None and scope.cancelled:
        return CommandResult(returncode=-1, cancelled=True)

    logger.debug("Running: %s", " ".join(argv))
    pipe = subprocess.PIPE if capture_output else None
    isolate = os.name == "posix" and (capture_output or not _has_terminal())
    start = time.monotonic()
    try:
        proc = subprocess.Popen(
            argv,
            stdout=pipe,
            stderr=pipe,
            text=True if capture_output else None,
            cwd=cwd,
            start_new_session=isolate,
        )
    except OSError as e:
        logger.debug("Spawn failed for %s: %s", argv[0] if argv else "<empty>", e)
        return CommandResult(returncode=-1, error=str(e))

    cancelled = False
    while True:
        try:
            stdout, stderr = proc.communicate(timeout=_POLL_INTERVAL)
            break
        except subprocess.TimeoutExpired:
            if scope is not None and scope.cancelled:
                _terminate(proc, group=isolate)
                stdout, stderr = proc.communicate()
                cancelled = True
                break

    elapsed_ms = int((time.monotonic() - start) * 1000)
    result = CommandResult(
        returncode=proc.returncode,
        stdout=stdout or "",
        stderr=stderr or "",
        cancelled=cancelled,
        elapsed_ms=elapsed_ms,
    )
    if cancelled:
        logger.info("Cancelled: %s", " ".join(argv))
    elif result.returncode != 0:
        logger.debug("Command exited %d after %dms: %s", result.returncode, elapsed_ms, " ".join(argv))
    return result


def _terminate(proc: subprocess.Popen, *, group: bool = False) -> None:
    """SIGTERM, then SIGKILL after the grace period.

    With ``group`` the signals go to the child's whole process group
    (it leads its own session), so anything it spawned stops with it.
    """
    if group:
        _killpg(proc.pid, signal.SIGTERM)
    else:
        proc.terminate()
    try:
        proc.wait(timeout=_TERMINATE_GRACE)
    except subprocess.TimeoutExpired:
        logger.warning("Process %d ignored SIGTERM, killing", proc.pid)
        if group:
            _killpg(proc.pid, signal.SIGKILL)
        else:
            proc.kill()
        proc.wait()
        return
    if group:
        # Leader exited; stop anything still left in its group
        _killpg(proc.pid, signal.SIGKILL)


def _killpg(pgid: int, sig: int) -> None:
    try:
        os.killpg(pgid, sig)
    except (ProcessLookupError, PermissionError):
        logger.debug("Process group %d already gone", pgid)


def _has_terminal() -> bool:
    try:
        return os.isatty(sys.stdin.fileno())
    except (AttributeError, OSError, ValueError):
        return False
