"""
Scratch directory lifecycle for the build-and-test driver.

The directory is created empty before the test run and must be empty again
at teardown. Removal uses rmdir semantics so any leftover fails the run.
"""

from __future__ import annotations

import errno
import logging
import os
import stat
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

from .errors import LeftoverFilesError, ScratchDirectoryError


def _warn_unreadable(exc: OSError) -> None:
    logging.warning("Cannot list %s: %s; its contents are not shown", exc.filename, exc.strerror)


@dataclass
class LeftoverEntry:
    """One file or directory found in the scratch directory at teardown."""

    path: Path
    mode: int
    size_bytes: int
    mtime: float

    @property
    def kind(self) -> str:
        if stat.S_ISLNK(self.mode):
            return "symlink"
        if stat.S_ISDIR(self.mode):
            return "directory"
        if stat.S_ISREG(self.mode):
            return "file"
        return "other"

    @property
    def mode_string(self) -> str:
        return stat.filemode(self.mode)

    @property
    def iso_mtime(self) -> str:
        """Return modification time as ISO format string."""
        return datetime.fromtimestamp(self.mtime, tz=timezone.utc).isoformat()


class ScratchDirectory:
    """A dedicated temporary directory the test run writes into."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def __repr__(self) -> str:
        return f"ScratchDirectory({str(self.path)!r})"

    def exists(self) -> bool:
        return self.path.is_dir()

    def create(self) -> None:
        """Create the directory. Its parent must exist and it must not.

        Raises:
            ScratchDirectoryError: If the directory cannot be created
        """
        logging.info("tests will store output in %s", self.path)
        logging.info("+ mkdir %s", self.path)
        try:
            self.path.mkdir()
        except FileExistsError as exc:
            raise ScratchDirectoryError(f"{self.path} already exists") from exc
        except OSError as exc:
            raise ScratchDirectoryError(f"Unable to create {self.path}: {exc}") from exc

    def list_leftovers(self) -> list[LeftoverEntry]:
        """Return every entry below the directory in path order.

        Symlinks are reported, not followed. Entries that vanish mid-walk are
        skipped. Directories that cannot be read are listed but not descended
        into.
        """
        entries: list[LeftoverEntry] = []
        for dirpath, dirnames, filenames in os.walk(self.path, onerror=_warn_unreadable, followlinks=False):
            for name in (*dirnames, *filenames):
                candidate = Path(dirpath) / name
                try:
                    info = candidate.lstat()
                except FileNotFoundError:
                    logging.warning("%s disappeared while listing", candidate)
                    continue
                entries.append(
                    LeftoverEntry(
                        path=candidate,
                        mode=info.st_mode,
                        size_bytes=info.st_size,
                        mtime=info.st_mtime,
                    )
                )
        return sorted(entries, key=lambda entry: str(entry.path))

    def remove(self) -> None:
        """Remove the directory, which must be empty.

        Raises:
            LeftoverFilesError: If anything is left inside
            ScratchDirectoryError: If removal fails for another reason
        """
        logging.info("+ rmdir %s", self.path)
        try:
            self.path.rmdir()
        except OSError as exc:
            if exc.errno in (errno.ENOTEMPTY, errno.EEXIST):
                leftovers = [entry.path for entry in self.list_leftovers()]
                raise LeftoverFilesError(self.path, leftovers) from exc
            raise ScratchDirectoryError(f"Unable to remove {self.path}: {exc}") from exc
