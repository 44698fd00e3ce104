"""Shared pytest fixtures for test files."""

from __future__ import annotations

import logging

import pytest

from tests.toolchain_fixtures import FakeRepo, make_fake_repo


@pytest.fixture(name="fake_repo")
def fixture_fake_repo(tmp_path) -> FakeRepo:
    """Provide a checkout whose fake toolchain succeeds and cleans up after itself."""
    return make_fake_repo(tmp_path)


@pytest.fixture(name="info_logs")
def fixture_info_logs(caplog):
    """Capture INFO and above from the driver modules."""
    caplog.set_level(logging.INFO)
    return caplog
