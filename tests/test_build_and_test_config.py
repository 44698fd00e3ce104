"""Tests for build_and_test/config.py."""

from __future__ import annotations

from pathlib import Path

import pytest

from build_and_test.config import (
    DEFAULT_SCRATCH_DIR,
    DEFAULT_TEST_TIMEOUT_SECONDS,
    DriverConfig,
    load_config,
)
from build_and_test.errors import ConfigurationError
from tests.assertions import assert_equal


def test_defaults_match_ci_job(tmp_path):
    """With nothing set, the job's fixed paths and bounds apply."""
    config = load_config(environ={"CI_REPO_ROOT": str(tmp_path)})

    assert_equal(config.scratch_dir, DEFAULT_SCRATCH_DIR)
    assert_equal(config.scratch_dir, Path("/var/tmp/omicron_tmp"))
    assert_equal(config.test_timeout, float(DEFAULT_TEST_TIMEOUT_SECONDS))
    assert_equal(config.repo_root, tmp_path.resolve())
    assert_equal(config.test_command, ("cargo", "test", "--locked", "--verbose", "--no-fail-fast"))
    assert_equal(dict(config.strict_flags), {"RUSTFLAGS": "-D warnings", "RUSTDOCFLAGS": "-D warnings"})


def test_repo_root_defaults_to_cwd(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)

    config = load_config(environ={})

    assert_equal(config.repo_root, tmp_path.resolve())


def test_environment_overrides(tmp_path):
    config = load_config(
        environ={
            "CI_REPO_ROOT": str(tmp_path),
            "CI_SCRATCH_DIR": str(tmp_path / "scratch"),
            "CI_TEST_TIMEOUT": "90",
        }
    )

    assert_equal(config.scratch_dir, tmp_path / "scratch")
    assert_equal(config.test_timeout, 90.0)


@pytest.mark.parametrize("raw", ["soon", "0", "-5", "nan", "inf", "-inf"])
def test_invalid_timeout_raises(tmp_path, raw):
    with pytest.raises(ConfigurationError, match="CI_TEST_TIMEOUT"):
        load_config(environ={"CI_REPO_ROOT": str(tmp_path), "CI_TEST_TIMEOUT": raw})


def test_relative_scratch_dir_raises(tmp_path):
    with pytest.raises(ConfigurationError, match="absolute"):
        load_config(environ={"CI_REPO_ROOT": str(tmp_path), "CI_SCRATCH_DIR": "relative/tmp"})


def test_missing_repo_root_raises(tmp_path):
    with pytest.raises(ConfigurationError, match="not a directory"):
        load_config(environ={"CI_REPO_ROOT": str(tmp_path / "nope")})


def test_env_file_is_loaded(tmp_path, monkeypatch):
    """Settings in the .env file named by CI_ENV_FILE are applied."""
    env_file = tmp_path / "ci.env"
    env_file.write_text(f"CI_REPO_ROOT={tmp_path}\nCI_TEST_TIMEOUT=15\n")
    monkeypatch.setenv("CI_ENV_FILE", str(env_file))

    config = load_config()

    assert_equal(config.test_timeout, 15.0)
    assert_equal(config.repo_root, tmp_path.resolve())


def test_env_file_does_not_override_existing_variables(tmp_path, monkeypatch):
    env_file = tmp_path / "ci.env"
    env_file.write_text("CI_TEST_TIMEOUT=15\n")
    monkeypatch.setenv("CI_REPO_ROOT", str(tmp_path))
    monkeypatch.setenv("CI_TEST_TIMEOUT", "30")

    config = load_config(env_path=str(env_file))

    assert_equal(config.test_timeout, 30.0)


def test_missing_env_file_raises(tmp_path):
    with pytest.raises(ConfigurationError, match="does not exist"):
        load_config(env_path=str(tmp_path / "missing.env"))


def test_derived_paths(tmp_path):
    config = DriverConfig(repo_root=tmp_path)

    assert_equal(config.env_script_path, tmp_path / "env.sh")
    assert_equal(
        config.prerequisites_command,
        ("bash", "./tools/install_builder_prerequisites.sh", "-y"),
    )


def test_env_file_fills_gaps_in_explicit_mapping(tmp_path):
    """With an explicit mapping, .env values apply where the mapping is silent."""
    env_file = tmp_path / "ci.env"
    env_file.write_text(f"CI_TEST_TIMEOUT=15\nCI_SCRATCH_DIR={tmp_path / 'from-file'}\n")

    config = load_config(
        env_path=str(env_file),
        environ={"CI_REPO_ROOT": str(tmp_path), "CI_SCRATCH_DIR": str(tmp_path / "from-mapping")},
    )

    assert_equal(config.test_timeout, 15.0)
    assert_equal(config.scratch_dir, tmp_path / "from-mapping")
