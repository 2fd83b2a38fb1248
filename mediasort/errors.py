"""
Exception types for mediasort.

Only DestinationUnavailable and RunInProgressError ever leave the engine;
everything else is absorbed and turned into a log line or a counter.
"""

from pathlib import Path
from typing import Optional, Union


class MediaSortError(Exception):
    """Base class for all mediasort errors."""


class MetadataUnavailable(MediaSortError):
    """A single date source found no usable value."""


class AccessDenied(MediaSortError):
    """A directory could not be enumerated."""

    def __init__(self, path: Path, cause: Optional[BaseException] = None):
        self.path = path
        self.cause = cause
        super().__init__(f"Access denied: {path}")


class MoveFailure(MediaSortError):
    """A classified file could not be relocated."""

    def __init__(self, source: Path, dest: Path, cause: BaseException):
        self.source = source
        self.dest = dest
        self.cause = cause
        super().__init__(f"Failed to move {source} -> {dest}: {cause}")


class DestinationUnavailable(MediaSortError):
    """The destination root cannot be created, written to, or overlaps the source."""

    def __init__(self, path: Path, cause: Union[BaseException, str, None] = None):
        self.path = path
        self.cause = cause
        reason = f": {cause}" if cause else ""
        super().__init__(f"Destination not accessible: {path}{reason}")


class RunInProgressError(MediaSortError):
    """A run was started while another run is still active."""
