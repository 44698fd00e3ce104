"""Pytest configuration and shared fixtures for the build-and-test driver."""

# pylint: disable=wrong-import-position

import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

import pytest

CI_VARIABLES = ("CI_SCRATCH_DIR", "CI_TEST_TIMEOUT", "CI_REPO_ROOT", "CI_ENV_FILE")


@pytest.fixture(autouse=True)
def isolate_ci_environment(monkeypatch):
    """Auto-use fixture that keeps the caller's CI_* settings out of every test."""
    for name in CI_VARIABLES:
        # setenv first so teardown also drops values a test loaded from a .env file.
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    yield
