"""
External command execution for the build-and-test driver.

Each command is echoed before it runs, inherits stdout/stderr, and turns a
non-zero exit or an expired timeout into an exception.
"""

from __future__ import annotations

import contextlib
import logging
import os
import resource
import shlex
import signal
import subprocess
import sys
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Sequence

from .errors import CommandFailedError, CommandTimeoutError
from .reports import log_step_report

KILL_GRACE_SECONDS = 10.0
POLL_INTERVAL_SECONDS = 0.05
EXIT_NOT_FOUND = 127
EXIT_NOT_EXECUTABLE = 126

# ru_maxrss is kilobytes on Linux, bytes on macOS.
_MAXRSS_SCALE = 1 if sys.platform == "darwin" else 1024


@dataclass
class StepResult:
    """Exit status and resource usage of one finished command."""

    argv: list[str]
    returncode: int
    wall_seconds: float
    user_seconds: float
    system_seconds: float
    max_rss_bytes: int

    @property
    def succeeded(self) -> bool:
        return self.returncode == 0


def trace(argv: Sequence[str]) -> None:
    """Echo a command the way shell xtrace does."""
    logging.info("+ %s", shlex.join(argv))


def _terminate_group(process: subprocess.Popen) -> None:
    """Stop a timed-out command and everything it spawned."""
    with contextlib.suppress(ProcessLookupError):
        os.killpg(process.pid, signal.SIGTERM)
    try:
        process.wait(timeout=KILL_GRACE_SECONDS)
    except subprocess.TimeoutExpired:
        logging.warning("Process group %d ignored SIGTERM; sending SIGKILL", process.pid)
        with contextlib.suppress(ProcessLookupError):
            os.killpg(process.pid, signal.SIGKILL)
        process.wait()


def _spawn(argv: Sequence[str], *, env: Mapping[str, str], cwd: Path, new_session: bool) -> subprocess.Popen:
    try:
        return subprocess.Popen(  # pylint: disable=consider-using-with
            list(argv),
            cwd=cwd,
            env=dict(env),
            start_new_session=new_session,
        )
    except FileNotFoundError as exc:
        logging.error("%s: command not found", argv[0])
        raise CommandFailedError(argv, EXIT_NOT_FOUND) from exc
    except PermissionError as exc:
        logging.error("%s: permission denied", argv[0])
        raise CommandFailedError(argv, EXIT_NOT_EXECUTABLE) from exc


def _reap(process: subprocess.Popen, timeout: float | None) -> tuple[int, resource.struct_rusage]:
    """Wait for process and return its exit status with its own rusage.

    Raises:
        subprocess.TimeoutExpired: If the process is still running after timeout
    """
    deadline = None if timeout is None else time.monotonic() + timeout
    while True:
        pid, status, usage = os.wait4(process.pid, 0 if deadline is None else os.WNOHANG)
        if pid:
            # Popen must not try to reap it again.
            process.returncode = os.waitstatus_to_exitcode(status)
            return process.returncode, usage
        if time.monotonic() >= deadline:
            raise subprocess.TimeoutExpired(process.args, timeout)
        time.sleep(POLL_INTERVAL_SECONDS)


def execute(
    argv: Sequence[str],
    *,
    env: Mapping[str, str],
    cwd: Path,
    timeout: float | None = None,
) -> StepResult:
    """Run a command to completion and measure it.

    A timeout kills the command's whole process group. Resource usage is
    that of this command and its reaped descendants only.

    Raises:
        CommandFailedError: If the command cannot be started
        CommandTimeoutError: If the command outlives timeout
    """
    trace(argv)
    new_session = timeout is not None
    start = time.monotonic()
    process = _spawn(argv, env=env, cwd=cwd, new_session=new_session)
    try:
        returncode, usage = _reap(process, timeout)
    except subprocess.TimeoutExpired:
        logging.error("%s: timed out after %gs", argv[0], timeout)
        _terminate_group(process)
        raise CommandTimeoutError(argv, timeout) from None
    except KeyboardInterrupt:
        # A separate session never sees the terminal's SIGINT.
        if new_session:
            _terminate_group(process)
        else:
            process.terminate()
            process.wait()
        raise
    return StepResult(
        argv=list(argv),
        returncode=returncode,
        wall_seconds=time.monotonic() - start,
        user_seconds=usage.ru_utime,
        system_seconds=usage.ru_stime,
        max_rss_bytes=usage.ru_maxrss * _MAXRSS_SCALE,
    )


def run_command(
    argv: Sequence[str],
    *,
    env: Mapping[str, str],
    cwd: Path,
    timeout: float | None = None,
    report: bool = False,
) -> StepResult:
    """Run a command and raise on any failure.

    Args:
        argv: Command and arguments
        env: Complete environment for the child
        cwd: Working directory for the child
        timeout: Optional wall-clock bound in seconds
        report: Log a ptime-style resource report once the command exits

    Raises:
        CommandFailedError: If the command exits non-zero
        CommandTimeoutError: If the command outlives timeout
    """
    result = execute(argv, env=env, cwd=cwd, timeout=timeout)
    if report:
        log_step_report(result)
    if not result.succeeded:
        raise CommandFailedError(argv, result.returncode)
    return result
