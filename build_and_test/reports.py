"""
Human-readable output for the build-and-test driver.

Formats step timing reports and the leftover listing printed at teardown.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:
    from .commands import StepResult
    from .scratch import LeftoverEntry

BYTES_PER_KIB = 1024
SECONDS_PER_MINUTE = 60
SECONDS_PER_HOUR = 3600
BANNER_WIDTH = 60


def format_size(num_bytes: int | None) -> str:
    """Convert byte count to human-readable format (B, KB, MB, GB, etc)."""
    if num_bytes is None:
        return "n/a"
    suffixes = ["B", "KB", "MB", "GB", "TB", "PB"]
    value = float(num_bytes)
    for suffix in suffixes:
        if value < BYTES_PER_KIB or suffix == suffixes[-1]:
            return f"{value:.1f}{suffix}"
        value /= BYTES_PER_KIB
    return f"{value:.1f}PB"


def format_duration(seconds: float) -> str:
    """Format seconds to human readable duration"""
    if seconds < SECONDS_PER_MINUTE:
        return f"{seconds:.3f}s"
    if seconds < SECONDS_PER_HOUR:
        minutes = int(seconds / SECONDS_PER_MINUTE)
        secs = int(seconds % SECONDS_PER_MINUTE)
        return f"{minutes}m {secs}s"
    hours = int(seconds / SECONDS_PER_HOUR)
    minutes = int((seconds % SECONDS_PER_HOUR) / SECONDS_PER_MINUTE)
    return f"{hours}h {minutes}m"


def banner(text: str) -> None:
    """Log a conspicuous section marker."""
    rule = "=" * BANNER_WIDTH
    logging.info(rule)
    logging.info("%s", text.upper().center(BANNER_WIDTH))
    logging.info(rule)


def format_step_report(result: StepResult) -> list[str]:
    """Return ptime -m style lines for a finished step."""
    return [
        f"real {format_duration(result.wall_seconds)}",
        f"user {result.user_seconds:.3f}s",
        f"sys  {result.system_seconds:.3f}s",
        f"peak rss {format_size(result.max_rss_bytes)}",
    ]


def log_step_report(result: StepResult) -> None:
    for line in format_step_report(result):
        logging.info("%s", line)


def format_leftover_line(entry: LeftoverEntry, *, preserved: bool | None = None) -> str:
    """Render one entry the way `find -ls` lists it, plus an output-rule tag."""
    line = f"{entry.mode_string} {entry.size_bytes:>12d} {entry.iso_mtime} {entry.path}"
    if preserved is None:
        return line
    return f"{line} [{'preserved' if preserved else 'discarded'}]"


def print_leftover_report(
    directory: Path,
    entries: Sequence[LeftoverEntry],
    preserved: Sequence[bool] | None = None,
) -> None:
    """Log every entry left in the scratch directory."""
    logging.info("files in %s (none expected on success):", directory)
    for idx, entry in enumerate(entries):
        flag = preserved[idx] if preserved is not None else None
        logging.info("%s", format_leftover_line(entry, preserved=flag))
    if entries:
        total = sum(entry.size_bytes for entry in entries)
        logging.info("%d leftover entry(ies), %s total", len(entries), format_size(total))
