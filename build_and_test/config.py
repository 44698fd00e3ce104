"""
Configuration and path resolution for the build-and-test driver.

Defaults mirror the CI job; every value can be overridden from the
environment or from an optional .env file.
"""

from __future__ import annotations

import logging
import math
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional

from dotenv import dotenv_values, load_dotenv

from .errors import ConfigurationError

DEFAULT_SCRATCH_DIR = Path("/var/tmp/omicron_tmp")
DEFAULT_TEST_TIMEOUT_SECONDS = 2 * 60 * 60

ENV_SCRIPT = "env.sh"
PREREQUISITES_SCRIPT = "tools/install_builder_prerequisites.sh"

VERSION_COMMANDS: tuple[tuple[str, ...], ...] = (
    ("cargo", "--version"),
    ("rustc", "--version"),
)

# --locked keeps Cargo.lock authoritative. No --workspace: end-to-end tests are not run here.
TEST_COMMAND: tuple[str, ...] = ("cargo", "test", "--locked", "--verbose", "--no-fail-fast")

STRICT_FLAGS: dict[str, str] = {
    "RUSTFLAGS": "-D warnings",
    "RUSTDOCFLAGS": "-D warnings",
}


def _resolve_env_path(env_path: Optional[str] = None) -> str | None:
    """
    Determine which .env file, if any, should be loaded.

    Priority order:
      1. Explicit parameter
      2. CI_ENV_FILE environment variable
    """
    if env_path:
        return env_path
    return os.environ.get("CI_ENV_FILE") or None


def _parse_timeout(raw: str) -> float:
    try:
        value = float(raw)
    except ValueError as exc:
        raise ConfigurationError(f"CI_TEST_TIMEOUT must be a number of seconds, got {raw!r}") from exc
    if not math.isfinite(value) or value <= 0:
        raise ConfigurationError(f"CI_TEST_TIMEOUT must be a positive, finite number, got {raw!r}")
    return value


@dataclass(frozen=True)
class DriverConfig:
    """Everything a run needs, resolved up front."""

    repo_root: Path
    scratch_dir: Path = DEFAULT_SCRATCH_DIR
    test_timeout: float = DEFAULT_TEST_TIMEOUT_SECONDS
    env_script: str = ENV_SCRIPT
    prerequisites_script: str = PREREQUISITES_SCRIPT
    version_commands: tuple[tuple[str, ...], ...] = VERSION_COMMANDS
    test_command: tuple[str, ...] = TEST_COMMAND
    strict_flags: Mapping[str, str] = field(default_factory=lambda: dict(STRICT_FLAGS))

    @property
    def env_script_path(self) -> Path:
        return self.repo_root / self.env_script

    @property
    def prerequisites_command(self) -> tuple[str, ...]:
        return ("bash", f"./{self.prerequisites_script}", "-y")


def load_config(env_path: Optional[str] = None, environ: Mapping[str, str] | None = None) -> DriverConfig:
    """
    Build the driver configuration from the environment.

    Args:
        env_path: Optional .env file loaded before reading variables
        environ: Mapping to read from (defaults to os.environ). Values from
            the .env file fill in names the mapping does not set.

    Raises:
        ConfigurationError: If a variable is set to an unusable value
    """
    source: Mapping[str, str] = os.environ if environ is None else environ
    resolved = _resolve_env_path(env_path)
    if resolved:
        dotenv_file = Path(resolved).expanduser()
        if not dotenv_file.is_file():
            raise ConfigurationError(f"Env file {resolved} does not exist")
        if environ is None:
            load_dotenv(dotenv_file)
        else:
            file_values = {key: value for key, value in dotenv_values(dotenv_file).items() if value is not None}
            source = {**file_values, **environ}
        logging.debug("Loaded settings from %s", dotenv_file)

    repo_root = Path(source.get("CI_REPO_ROOT") or Path.cwd()).expanduser().resolve()
    if not repo_root.is_dir():
        raise ConfigurationError(f"Repository root {repo_root} is not a directory")

    scratch_raw = source.get("CI_SCRATCH_DIR")
    scratch_dir = Path(scratch_raw).expanduser() if scratch_raw else DEFAULT_SCRATCH_DIR
    if not scratch_dir.is_absolute():
        raise ConfigurationError(f"CI_SCRATCH_DIR must be an absolute path, got {scratch_raw!r}")

    timeout_raw = source.get("CI_TEST_TIMEOUT")
    test_timeout = _parse_timeout(timeout_raw) if timeout_raw else float(DEFAULT_TEST_TIMEOUT_SECONDS)

    return DriverConfig(repo_root=repo_root, scratch_dir=scratch_dir, test_timeout=test_timeout)
