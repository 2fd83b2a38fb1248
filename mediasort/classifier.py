"""
Media classification by file extension.
"""

from datetime import datetime
from pathlib import Path
from typing import Dict, Optional, Protocol

from .constants import PHOTO_EXTENSIONS, VIDEO_EXTENSIONS, get_logger
from .models import FoundItem, MediaKind
from .resolvers import PhotoDateResolver, VideoDateResolver


class DateResolver(Protocol):
    def resolve(self, path: Path) -> Optional[datetime]:
        ...


class ItemClassifier:
    """Maps files to media kinds and builds FoundItems with the kind's resolver."""

    def __init__(self, resolvers: Optional[Dict[MediaKind, DateResolver]] = None):
        self.resolvers: Dict[MediaKind, DateResolver] = {
            MediaKind.PHOTO: PhotoDateResolver(),
            MediaKind.VIDEO: VideoDateResolver(),
        } if resolvers is None else dict(resolvers)

    @staticmethod
    def classify(path: Path) -> Optional[MediaKind]:
        """Return the media kind of an existing file, or None if it is not media.

        A file that cannot be stat'ed is treated as absent.
        """
        try:
            if not path.is_file():
                return None
        except OSError as e:
            get_logger().debug(f"Cannot stat {path}: {e}")
            return None

        ext = path.suffix.lower()
        if ext in VIDEO_EXTENSIONS:
            return MediaKind.VIDEO
        if ext in PHOTO_EXTENSIONS:
            return MediaKind.PHOTO
        return None

    def get_item(self, path: Path) -> Optional[FoundItem]:
        """Classify a file and resolve its date; None for non-media files."""
        kind = self.classify(path)
        if kind is None or kind not in self.resolvers:
            return None

        date_taken = self.resolvers[kind].resolve(path)
        if date_taken is None:
            # File vanished between classification and resolution
            return None
        return FoundItem(kind=kind, source_path=path, date_taken=date_taken)
