"""
File extension constants and shared settings for media organization.
"""

import logging
import shutil
from typing import Optional

from rich.console import Console

PROGRAM = "mediasort"

# File extension constants (compared against the lowercased suffix)
VIDEO_EXTENSIONS = (".mov", ".mp4", ".m4v", ".avi", ".mkv", ".wmv", ".webm")
PHOTO_EXTENSIONS = (".jpg", ".jpeg", ".png", ".gif", ".bmp", ".tiff", ".heic")

# Destination folder names are always YYYY-MM-DD, independent of locale
SUB_PATH_FORMAT = "{year:04d}-{month:02d}-{day:02d}"

# Capacity of the in-memory log ring kept by the reporters
DEFAULT_MAX_LOG_ENTRIES = 5000

# Shell metadata property names consulted for videos, in priority order
MEDIA_CREATED = "Media created"
DATE_TAKEN = "Date taken"

# Apple QuickTime metadata box holding the recording date
QUICKTIME_NAMESPACE = "com.apple.quicktime"
QUICKTIME_CREATIONDATE = "creationdate"

_console: Optional[Console] = None


def get_logger() -> logging.Logger:
    """Return the shared program logger."""
    return logging.getLogger(PROGRAM)


def get_console() -> Console:
    """Return the shared rich console."""
    global _console
    if _console is None:
        _console = Console()
    return _console


def check_tool_availability(cmd: str) -> bool:
    """Check whether an external command-line tool is on the PATH."""
    return shutil.which(cmd) is not None


ffprobe_available = check_tool_availability("ffprobe")
mdls_available = check_tool_availability("mdls")
