"""
Command-line interface and main entry point for the build-and-test driver.

The run itself takes no options; flags only control logging and metadata
inspection.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from .config import load_config
from .driver import CIDriver
from .errors import CIDriverError
from .job_metadata import JobMetadata, parse_job_header

JOB_SCRIPT = Path(__file__).resolve().parent.parent / "ci.py"


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Run the toolchain test suite and verify the scratch directory is left empty.",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable verbose logging.")
    parser.add_argument(
        "--print-metadata",
        action="store_true",
        help="Print the declared job metadata and exit without running.",
    )
    return parser.parse_args(argv)


def _load_metadata(job_script: Path) -> JobMetadata | None:
    """Return the job metadata, or None when the job script is not available."""
    if not job_script.exists():
        logging.debug("No job script at %s; leftovers will not be tagged", job_script)
        return None
    return parse_job_header(job_script)


def main(argv: list[str] | None = None, *, job_script: Path = JOB_SCRIPT) -> int:
    """Main entry point for the build-and-test CLI."""
    args = parse_args(sys.argv[1:] if argv is None else argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(message)s",
    )

    try:
        if args.print_metadata:
            for line in parse_job_header(job_script).describe():
                print(line)
            return 0
        config = load_config()
        driver = CIDriver(config, metadata=_load_metadata(job_script))
        driver.run()
    except CIDriverError as exc:
        logging.error("build-and-test failed: %s", exc)
        return exc.exit_code
    return 0
