"""
Run history: a per-run log file and a one-line audit record per run.
"""

import logging
import re
from datetime import datetime
from pathlib import Path
from typing import Optional

from .models import RunSummary


class HistoryManager:
    """Manages the run folder, its log file and the global runs.log."""

    def __init__(self, dest_path: Path, root_dir: Path):
        self.dest_path = dest_path
        self.root_dir = root_dir
        self.history_dir = self.root_dir / "history"
        self.runs_audit_log = self.root_dir / "runs.log"
        self._file_handler: Optional[logging.Handler] = None

        self._setup_run_folder()

    def _setup_run_folder(self) -> None:
        """Create a dated run folder, adding a counter if one already has content."""
        timestamp = datetime.now().strftime("%Y-%m-%d")
        base_name = f"{timestamp}+{self._sanitize_dest_name(self.dest_path)}"

        folder_name = base_name
        folder = self.history_dir / folder_name
        counter = 1
        while folder.exists() and any(folder.iterdir()):
            folder_name = f"{base_name}-{counter:02d}"
            folder = self.history_dir / folder_name
            counter += 1

        folder.mkdir(parents=True, exist_ok=True)
        self.run_folder = folder
        self.run_folder_name = folder_name
        self.run_log = folder / "run.log"

    @staticmethod
    def _sanitize_dest_name(dest_path: Path) -> str:
        """Convert destination path to safe folder name."""
        sanitized = re.sub(r'[^\w\-_]', '-', dest_path.name)
        sanitized = re.sub(r'-+', '-', sanitized)
        return sanitized.strip('-') or "root"

    def setup_run_logger(self, logger: logging.Logger) -> None:
        """Send DEBUG and above from the logger to this run's log file."""
        file_handler = logging.FileHandler(self.run_log, encoding='utf-8')
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s [%(name)s] %(levelname)s: %(message)s'
        ))
        logger.addHandler(file_handler)
        logger.setLevel(logging.DEBUG)
        self._file_handler = file_handler

    def close_run_logger(self, logger: logging.Logger) -> None:
        """Detach and close the run log file handler."""
        if self._file_handler is None:
            return
        logger.removeHandler(self._file_handler)
        self._file_handler.close()
        self._file_handler = None

    def log_run_summary(self, source: Path, dest: Path, summary: RunSummary) -> None:
        """Append the run summary to the global runs.log."""
        self.root_dir.mkdir(parents=True, exist_ok=True)

        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        record = (
            f"{timestamp} | {summary.status} | "
            f"Source: {source} | Dest: {dest} | "
            f"Processed: {summary.processed_count} ({summary.photos} photos, "
            f"{summary.videos} videos) | Errors: {summary.error_count} | "
            f"Skipped dirs: {summary.skipped_dirs} | "
            f"Size: {summary.total_size_mb:.1f}MB | History: {self.run_folder_name}\n"
        )

        with open(self.runs_audit_log, 'a', encoding='utf-8') as f:
            f.write(record)
