"""
Data model: media kinds, found items and run summaries.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path

from .constants import SUB_PATH_FORMAT


class MediaKind(Enum):
    """Closed set of media kinds; each kind has its own date resolver."""

    PHOTO = "photo"
    VIDEO = "video"


def destination_sub_path(date_taken: datetime) -> str:
    """Format the date folder name (YYYY-MM-DD, locale independent)."""
    return SUB_PATH_FORMAT.format(year=date_taken.year, month=date_taken.month,
                                  day=date_taken.day)


@dataclass(frozen=True)
class FoundItem:
    """A classified media file with its resolved capture date.

    The date is resolved once, before construction, and never changes;
    the destination folder is always derived from it.
    """

    kind: MediaKind
    source_path: Path
    date_taken: datetime

    @property
    def destination_sub_path(self) -> str:
        return destination_sub_path(self.date_taken)

    @property
    def file_name(self) -> str:
        return self.source_path.name


@dataclass(frozen=True)
class RunSummary:
    """Final counters of one organize run."""

    processed_count: int
    error_count: int
    cancelled: bool = False
    aborted: bool = False
    photos: int = 0
    videos: int = 0
    skipped_dirs: int = 0
    total_size: int = 0

    @property
    def total_size_mb(self) -> float:
        return self.total_size / (1024 * 1024)

    @property
    def status(self) -> str:
        """Short status label used in the run history."""
        if self.aborted:
            return "ABORTED"
        if self.cancelled:
            return "CANCELLED"
        if self.error_count:
            return "PARTIAL"
        return "SUCCESS"
