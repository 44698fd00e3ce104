#!/usr/bin/env python3
#:
#: name = "build-and-test (helios)"
#: variety = "basic"
#: target = "helios-2.0"
#: rust_toolchain = "1.70.0"
#: output_rules = [
#:	"/var/tmp/omicron_tmp/*",
#:	"!/var/tmp/omicron_tmp/crdb-base*",
#:	"!/var/tmp/omicron_tmp/rustc*",
#: ]
"""Project-specific CI entrypoint for the build-and-test job."""

from __future__ import annotations

import sys

from build_and_test.cli import main as ci_main


def run() -> int:
    """Run the build-and-test job with the caller's flags."""
    return ci_main(sys.argv[1:])


if __name__ == "__main__":
    raise SystemExit(run())
