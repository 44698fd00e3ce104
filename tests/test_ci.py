"""Tests for ci.py module."""

from __future__ import annotations

from unittest.mock import patch

from tests.assertions import assert_equal


def test_run_function():
    """Test run() forwards the caller's flags to the build-and-test CLI."""
    with patch("ci.ci_main", return_value=42) as mock_ci_main, patch("sys.argv", ["ci.py", "--verbose"]):
        from ci import run  # pylint: disable=import-outside-toplevel

        result = run()

        assert_equal(result, 42)
        mock_ci_main.assert_called_once_with(["--verbose"])


def test_header_declares_job_metadata():
    """The orchestrator header in ci.py parses into the expected job."""
    from build_and_test.cli import JOB_SCRIPT  # pylint: disable=import-outside-toplevel
    from build_and_test.job_metadata import parse_job_header  # pylint: disable=import-outside-toplevel

    metadata = parse_job_header(JOB_SCRIPT)

    assert_equal(metadata.name, "build-and-test (helios)")
    assert_equal(metadata.variety, "basic")
    assert metadata.is_preserved("/var/tmp/omicron_tmp/leftover.log")
    assert not metadata.is_preserved("/var/tmp/omicron_tmp/rustc1234")
