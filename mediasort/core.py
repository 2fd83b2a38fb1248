"""
Core organizing functionality: traversal, destination naming and moves.
"""

import threading
from pathlib import Path
from typing import Optional

from .classifier import ItemClassifier
from .constants import get_logger
from .errors import AccessDenied, DestinationUnavailable, MoveFailure, RunInProgressError
from .file_operations import FileOperations
from .models import FoundItem, MediaKind, RunSummary
from .reporting import Reporter


class CancellationToken:
    """Cooperative cancellation flag polled by the engine at checkpoints."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    def is_cancelled(self) -> bool:
        return self._event.is_set()


class RunState:
    """Counters of one run; written only by the thread running the engine."""

    def __init__(self):
        self.processed_count = 0
        self.error_count = 0
        self.photos = 0
        self.videos = 0
        self.skipped_dirs = 0
        self.total_size = 0

    def record_move(self, item: FoundItem, file_size: int) -> None:
        """Record a successfully moved file."""
        self.processed_count += 1
        if item.kind is MediaKind.VIDEO:
            self.videos += 1
        else:
            self.photos += 1
        self.total_size += file_size

    def record_error(self) -> None:
        """Record a file that could not be moved."""
        self.error_count += 1

    def record_skipped_dir(self) -> None:
        """Record a directory that could not be enumerated."""
        self.skipped_dirs += 1

    def summary(self, cancelled: bool = False, aborted: bool = False) -> RunSummary:
        return RunSummary(
            processed_count=self.processed_count, error_count=self.error_count,
            cancelled=cancelled, aborted=aborted, photos=self.photos, videos=self.videos,
            skipped_dirs=self.skipped_dirs, total_size=self.total_size
        )


class OrganizerEngine:
    """Moves media files from a source tree into date folders under a destination.

    Traversal is depth-first, files before subdirectories, each level sorted
    by name. A directory that cannot be listed is skipped without affecting
    its siblings; a file that cannot be moved is counted as an error and
    left in place. Nothing already moved is rolled back.
    """

    def __init__(self, classifier: Optional[ItemClassifier] = None,
                 file_ops: Optional[FileOperations] = None):
        self.file_ops = file_ops or FileOperations()
        self.classifier = classifier or ItemClassifier()
        self.logger = get_logger()
        self._active = threading.Lock()

    def run(self, source_root: Path, dest_root: Path, cancel: CancellationToken,
            reporter: Reporter) -> RunSummary:
        """Organize one source tree; only one run per engine at a time."""
        if not self._active.acquire(blocking=False):
            raise RunInProgressError("An organize run is already active on this engine")

        try:
            return self._run(Path(source_root), Path(dest_root), cancel, reporter)
        finally:
            self._active.release()

    def _run(self, source_root: Path, dest_root: Path, cancel: CancellationToken,
             reporter: Reporter) -> RunSummary:
        state = RunState()
        self.logger.info(f"Starting organize run: {source_root} -> {dest_root}")
        reporter.on_log_entry("Starting organization process...", is_highlight=True)

        try:
            self.file_ops.check_destination_root(dest_root, source_root)
        except DestinationUnavailable as e:
            self.logger.error(str(e))
            reporter.on_log_entry(f"Aborted: {e}. Processed 0 files with 0 errors.",
                                  is_highlight=True)
            return state.summary(aborted=True)

        self._apply_all_files(source_root, dest_root, cancel, reporter, state)

        cancelled = cancel.is_cancelled()
        totals = f"Processed {state.processed_count} files with {state.error_count} errors."
        if cancelled:
            self.logger.info(f"Run cancelled: {totals}")
            reporter.on_log_entry(f"Operation cancelled by user. {totals}", is_highlight=True)
        else:
            self.logger.info(f"Run complete: {totals}")
            reporter.on_log_entry(f"Complete! {totals}", is_highlight=True)

        return state.summary(cancelled=cancelled)

    def _apply_all_files(self, folder: Path, dest_root: Path, cancel: CancellationToken,
                         reporter: Reporter, state: RunState) -> None:
        """Process the files of one directory, then recurse into its subdirectories."""
        if cancel.is_cancelled():
            return

        try:
            files, subdirs = self.file_ops.list_directory(folder)
        except OSError as e:
            self._report_access_denied(folder, e, reporter, state)
            return

        for file_path in files:
            if cancel.is_cancelled():
                return

            item = self.classifier.get_item(file_path)
            if item is not None:
                self._process_item(item, dest_root, reporter, state)

        for subdir in subdirs:
            if cancel.is_cancelled():
                return

            try:
                self._apply_all_files(subdir, dest_root, cancel, reporter, state)
            except OSError as e:
                self._report_access_denied(subdir, e, reporter, state)

    def _report_access_denied(self, folder: Path, error: OSError, reporter: Reporter,
                              state: RunState) -> None:
        denied = AccessDenied(folder, error)
        state.record_skipped_dir()
        self.logger.warning(f"Skipping subtree: {denied} ({error})")
        reporter.on_log_entry(str(denied))

    def get_destination_path(self, item: FoundItem, dest_root: Path) -> Path:
        """Generate a collision-free destination path for an item."""
        dest_dir = dest_root / item.destination_sub_path
        return self.file_ops.create_unique_path(dest_dir, item.file_name)

    def _process_item(self, item: FoundItem, dest_root: Path, reporter: Reporter,
                      state: RunState) -> None:
        """Move a single item, isolating any failure to this file."""
        dest_path = dest_root / item.destination_sub_path / item.file_name
        try:
            file_size = item.source_path.stat().st_size
            dest_path = self.get_destination_path(item, dest_root)
            self.file_ops.move_file(item.source_path, dest_path)
        except MoveFailure as e:
            self._report_move_failure(item, e, e.cause, reporter, state)
            return
        except OSError as e:
            self._report_move_failure(item, MoveFailure(item.source_path, dest_path, e), e,
                                      reporter, state)
            return

        state.record_move(item, file_size)
        self.logger.info(f"{item.source_path} -> {dest_path}")

        message = f"{item.file_name} -> {item.destination_sub_path}"
        if dest_path.name != item.file_name:
            message += f" (as {dest_path.name})"
        reporter.on_log_entry(message)
        reporter.on_progress(state.processed_count, state.error_count)

    def _report_move_failure(self, item: FoundItem, failure: MoveFailure, cause: BaseException,
                             reporter: Reporter, state: RunState) -> None:
        state.record_error()
        self.logger.error(str(failure))
        reporter.on_log_entry(f"Error: {item.file_name} - {cause}")
        reporter.on_progress(state.processed_count, state.error_count)
