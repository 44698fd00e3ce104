"""
Child-process environment for the build-and-test driver.

The setup script is sourced in a bash subshell and the environment it leaves
behind is captured, so later steps see the same PATH a shell job would.
"""

from __future__ import annotations

import logging
import os
import subprocess
from pathlib import Path
from typing import Mapping

from .commands import trace
from .errors import EnvironmentSetupError

# Sourced script sees the job's strict mode; its stdout is kept off the env dump.
_SOURCE_SNIPPET = 'set -o errexit -o nounset -o pipefail; source "$1" >&2; env -0'

# Bookkeeping variables bash sets for itself.
_SHELL_INTERNALS = frozenset({"_", "SHLVL", "OLDPWD"})


def parse_env_dump(raw: bytes) -> dict[str, str]:
    """Parse NUL separated `env -0` output into a mapping."""
    env: dict[str, str] = {}
    for chunk in raw.split(b"\0"):
        if not chunk:
            continue
        name, sep, value = chunk.decode("utf-8", errors="surrogateescape").partition("=")
        if not sep:
            raise EnvironmentSetupError(f"Malformed environment entry {name!r}")
        if name in _SHELL_INTERNALS:
            continue
        env[name] = value
    return env


def _log_path_changes(before: str, after: str) -> None:
    known = set(before.split(os.pathsep)) if before else set()
    added = [entry for entry in after.split(os.pathsep) if entry and entry not in known]
    for entry in added:
        logging.info("PATH += %s", entry)


def source_environment(script: Path, base_env: Mapping[str, str], *, cwd: Path) -> dict[str, str]:
    """Source script in bash and return the resulting environment.

    Raises:
        EnvironmentSetupError: If the script is missing or exits non-zero
    """
    if not script.is_file():
        raise EnvironmentSetupError(f"Environment script {script} does not exist")
    argv = ["bash", "-c", _SOURCE_SNIPPET, "bash", str(script)]
    trace(["source", str(script)])
    try:
        completed = subprocess.run(
            argv,
            cwd=cwd,
            env=dict(base_env),
            stdout=subprocess.PIPE,
            check=False,
        )
    except OSError as exc:
        raise EnvironmentSetupError(f"Unable to start bash to source {script}: {exc}") from exc
    if completed.returncode != 0:
        raise EnvironmentSetupError(f"Sourcing {script} failed with status {completed.returncode}")
    env = parse_env_dump(completed.stdout)
    _log_path_changes(base_env.get("PATH", ""), env.get("PATH", ""))
    return env


def strict_test_environment(
    env: Mapping[str, str],
    *,
    scratch_dir: Path,
    strict_flags: Mapping[str, str],
) -> dict[str, str]:
    """Return a copy of env configured for the test run."""
    test_env = dict(env)
    for name, value in strict_flags.items():
        logging.info("+ export %s=%r", name, value)
        test_env[name] = value
    logging.info("+ export TMPDIR=%s", scratch_dir)
    test_env["TMPDIR"] = str(scratch_dir)
    logging.info("+ export RUST_BACKTRACE=1")
    test_env["RUST_BACKTRACE"] = "1"
    return test_env
