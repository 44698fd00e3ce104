"""
Build-and-test CI driver package.

Run the toolchain test suite inside a dedicated scratch directory and fail
the build if anything is left behind.
"""

from . import commands, config, driver, environment, errors, job_metadata, reports, scratch
from .config import DriverConfig, load_config
from .driver import CIDriver
from .errors import (
    CIDriverError,
    CommandFailedError,
    CommandTimeoutError,
    ConfigurationError,
    EnvironmentSetupError,
    JobMetadataError,
    LeftoverFilesError,
    ScratchDirectoryError,
)
from .job_metadata import JobMetadata, OutputRule, parse_job_header
from .scratch import LeftoverEntry, ScratchDirectory

__all__ = [
    "CIDriver",
    "CIDriverError",
    "CommandFailedError",
    "CommandTimeoutError",
    "ConfigurationError",
    "DriverConfig",
    "EnvironmentSetupError",
    "JobMetadata",
    "JobMetadataError",
    "LeftoverEntry",
    "LeftoverFilesError",
    "OutputRule",
    "ScratchDirectory",
    "ScratchDirectoryError",
    "commands",
    "config",
    "driver",
    "environment",
    "errors",
    "job_metadata",
    "load_config",
    "parse_job_header",
    "reports",
    "scratch",
]
