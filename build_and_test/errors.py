"""
Exception types for the build-and-test driver.

Every failure class is fatal. Each carries the exit code the CLI reports.
"""

from __future__ import annotations

from pathlib import Path
from typing import Sequence

EXIT_FAILURE = 1
EXIT_TIMEOUT = 124


class CIDriverError(RuntimeError):
    """Base class for all fatal driver failures."""

    exit_code = EXIT_FAILURE


class ConfigurationError(CIDriverError):
    """Raised when a required setting is undefined or malformed."""


class JobMetadataError(CIDriverError):
    """Raised when the job header is missing or malformed."""


class EnvironmentSetupError(CIDriverError):
    """Raised when sourcing the environment-setup script fails."""


class CommandFailedError(CIDriverError):
    """Raised when an external command exits non-zero."""

    def __init__(self, argv: Sequence[str], returncode: int) -> None:
        super().__init__(f"command {' '.join(argv)!r} exited with status {returncode}")
        self.argv = list(argv)
        self.returncode = returncode
        # Signal deaths come back negative from subprocess.
        self.exit_code = returncode if returncode > 0 else EXIT_FAILURE


class CommandTimeoutError(CIDriverError):
    """Raised when a command exceeds its wall-clock bound."""

    exit_code = EXIT_TIMEOUT

    def __init__(self, argv: Sequence[str], timeout: float) -> None:
        super().__init__(f"command {' '.join(argv)!r} timed out after {timeout:g}s")
        self.argv = list(argv)
        self.timeout = timeout


class LeftoverFilesError(CIDriverError):
    """Raised when the scratch directory is not empty at teardown."""

    def __init__(self, directory: Path, leftovers: Sequence[Path]) -> None:
        super().__init__(f"{directory} is not empty: {len(leftovers)} leftover entry(ies)")
        self.directory = directory
        self.leftovers = list(leftovers)


class ScratchDirectoryError(CIDriverError):
    """Raised when the scratch directory cannot be created or removed."""
