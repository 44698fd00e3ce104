"""
The build-and-test CI driver.

Runs the job's steps in order and stops at the first failure: toolchain
versions, scratch directory, environment setup, prerequisites, the test
run under a timeout, then the leftover check.
"""

from __future__ import annotations

import logging
import os
from typing import Mapping

from .commands import run_command
from .config import DriverConfig
from .environment import source_environment, strict_test_environment
from .job_metadata import JobMetadata
from .reports import banner, print_leftover_report
from .scratch import LeftoverEntry, ScratchDirectory


class CIDriver:
    """Sequences one build-and-test run. Every failure raises a CIDriverError."""

    def __init__(
        self,
        config: DriverConfig,
        *,
        metadata: JobMetadata | None = None,
        base_env: Mapping[str, str] | None = None,
    ) -> None:
        self.config = config
        self.metadata = metadata
        self.base_env = dict(os.environ if base_env is None else base_env)
        self.scratch = ScratchDirectory(config.scratch_dir)

    def print_versions(self) -> None:
        for argv in self.config.version_commands:
            run_command(argv, env=self.base_env, cwd=self.config.repo_root)

    def setup_environment(self) -> dict[str, str]:
        return source_environment(
            self.config.env_script_path,
            self.base_env,
            cwd=self.config.repo_root,
        )

    def install_prerequisites(self, env: Mapping[str, str]) -> None:
        banner("prerequisites")
        run_command(
            self.config.prerequisites_command,
            env=env,
            cwd=self.config.repo_root,
            report=True,
        )

    def run_tests(self, env: Mapping[str, str]) -> None:
        # Our own timeout turns a hang into an ordinary failure instead of an orchestrator kill.
        banner("test")
        test_env = strict_test_environment(
            env,
            scratch_dir=self.scratch.path,
            strict_flags=self.config.strict_flags,
        )
        run_command(
            self.config.test_command,
            env=test_env,
            cwd=self.config.repo_root,
            timeout=self.config.test_timeout,
            report=True,
        )

    def _preserved_flags(self, entries: list[LeftoverEntry]) -> list[bool] | None:
        if self.metadata is None or not self.metadata.output_rules:
            return None
        return [self.metadata.is_preserved(entry.path) for entry in entries]

    def verify_clean(self) -> None:
        """List what the test run left behind, then rmdir the scratch directory."""
        entries = self.scratch.list_leftovers()
        print_leftover_report(self.scratch.path, entries, self._preserved_flags(entries))
        self.scratch.remove()

    def run(self) -> None:
        """Execute every step in order; the first failure propagates."""
        self.print_versions()
        self.scratch.create()
        env = self.setup_environment()
        self.install_prerequisites(env)
        self.run_tests(env)
        self.verify_clean()
        logging.info("build-and-test finished; %s removed", self.scratch.path)
