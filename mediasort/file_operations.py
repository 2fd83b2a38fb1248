"""
Filesystem operations used by the organizer engine.
"""

import os
import shutil
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Tuple

from .constants import get_logger
from .errors import DestinationUnavailable, MoveFailure


class FileOperations:
    """Directory listing, timestamps, collision-free naming and safe moves."""

    def __init__(self):
        self.logger = get_logger()

    def list_directory(self, directory: Path) -> Tuple[List[Path], List[Path]]:
        """List (files, subdirectories) of a directory, each sorted by name.

        Symlinked directories are not followed. Raises OSError when the
        directory cannot be enumerated.
        """
        files = []
        subdirs = []
        with os.scandir(directory) as entries:
            for entry in entries:
                if entry.is_dir(follow_symlinks=False):
                    subdirs.append(Path(entry.path))
                elif entry.is_file():
                    files.append(Path(entry.path))
        return sorted(files), sorted(subdirs)

    @staticmethod
    def exists(path: Path) -> bool:
        """Check whether anything (file, directory or dangling link) occupies a path."""
        return os.path.lexists(path)

    @staticmethod
    def last_write_time(path: Path) -> datetime:
        """Get the file modification time as naive local time."""
        return datetime.fromtimestamp(path.stat().st_mtime)

    @staticmethod
    def ensure_directory(directory: Path) -> None:
        """Create directory and parents if needed; succeeds if already present."""
        directory.mkdir(parents=True, exist_ok=True)

    @staticmethod
    def paths_overlap(first: Path, second: Path) -> bool:
        """Check whether two paths are identical or one contains the other."""
        first = Path(first).resolve()
        second = Path(second).resolve()
        return first == second or first in second.parents or second in first.parents

    def check_destination_root(self, dest_root: Path, source_root: Optional[Path] = None) -> None:
        """Make sure the destination root is usable before anything is moved.

        It must not overlap the source tree, and must exist (it is created
        if missing) and be writable.
        """
        if source_root is not None and self.paths_overlap(source_root, dest_root):
            raise DestinationUnavailable(dest_root, f"overlaps the source folder {source_root}")

        try:
            self.ensure_directory(dest_root)
        except OSError as e:
            raise DestinationUnavailable(dest_root, e) from e

        if not dest_root.is_dir() or not os.access(dest_root, os.W_OK | os.X_OK):
            raise DestinationUnavailable(dest_root)

    def create_unique_path(self, dest_dir: Path, file_name: str) -> Path:
        """Generate a free path, appending _1, _2, ... before the extension."""
        dest_path = dest_dir / file_name
        if not self.exists(dest_path):
            return dest_path

        name = Path(file_name)
        stem = name.stem
        suffix = name.suffix
        counter = 1
        while self.exists(dest_path):
            dest_path = dest_dir / f"{stem}_{counter}{suffix}"
            counter += 1
        return dest_path

    def move_file(self, source: Path, dest: Path) -> None:
        """Relocate a file; the source is only removed once the destination is written.

        Raises MoveFailure with the underlying cause.
        """
        try:
            # Create destination directory
            self.ensure_directory(dest.parent)

            # Rename where possible, copy then delete across devices
            shutil.move(str(source), str(dest))

            # Verify the operation
            if not dest.exists():
                raise FileNotFoundError(f"File not found after move: {dest}")
            if source.exists():
                raise FileExistsError(f"Source file still exists after move: {source}")

        except OSError as e:
            self._discard_partial_copy(source, dest)
            raise MoveFailure(source, dest, e) from e

        self.logger.debug(f"{source} -> {dest}")

    def _discard_partial_copy(self, source: Path, dest: Path) -> None:
        """Remove an incomplete destination left behind by a failed cross-device move."""
        if not source.exists() or not dest.is_file():
            return
        try:
            dest.unlink()
        except OSError as e:
            self.logger.warning(f"Could not remove partial copy {dest}: {e}")
