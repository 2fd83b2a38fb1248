"""
mediasort - Move photos and videos into YYYY-MM-DD folders by capture date.

The capture date comes from the best metadata available: EXIF fields for
photos; shell properties and container tags for videos; the file
modification time when nothing else is usable.

MIT License.
"""

__version__ = "1.0.0"
__copyright__ = "Copyright (c) 2025 mediasort contributors"


# Public API
from .classifier import ItemClassifier
from .cli import main
from .config import Config
from .core import CancellationToken, OrganizerEngine
from .models import FoundItem, MediaKind, RunSummary
from .reporting import BufferedReporter, ConsoleReporter, LogBuffer
from .resolvers import (PhotoDateResolver, VideoDateResolver, resolve_photo_date,
                        resolve_video_date)
from .worker import OrganizerWorker

__all__ = [ "main", "Config", "ItemClassifier", "CancellationToken", "OrganizerEngine",
            "FoundItem", "MediaKind", "RunSummary", "BufferedReporter", "ConsoleReporter",
            "LogBuffer", "PhotoDateResolver", "VideoDateResolver", "resolve_photo_date",
            "resolve_video_date", "OrganizerWorker" ]
