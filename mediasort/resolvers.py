"""
Capture-date resolution for photos and videos.

Each resolver tries an ordered list of date sources and returns the first
usable value. A source that has nothing to offer, or fails outright, is
skipped; the file modification time closes every chain.
"""

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, List, Optional, Sequence

from .constants import (DATE_TAKEN, MEDIA_CREATED, QUICKTIME_CREATIONDATE,
                        QUICKTIME_NAMESPACE, get_logger)
from .errors import MetadataUnavailable
from .file_operations import FileOperations
from .metadata import (ContainerTagReader, PhotoMetadataReader, ShellMetadataProvider,
                       default_shell_provider)
from .timestamps import parse_container_date, parse_exif_datetime, parse_shell_date

logger = get_logger()

# EXIF fields in priority order: capture, digitization, generic datetime
PHOTO_DATE_FIELDS = ("DateTimeOriginal", "DateTimeDigitized", "DateTime")

# Container "year" tags are accepted only strictly inside this range
MIN_TAG_YEAR = 1900
MAX_TAG_YEAR = 2100


@dataclass(frozen=True)
class DateSource:
    """One named, independently fallible date source."""

    name: str
    read: Callable[[Path], Optional[datetime]]


def first_available_date(path: Path, sources: Sequence[DateSource]) -> Optional[datetime]:
    """Return the date from the first source that yields one."""
    for source in sources:
        try:
            value = source.read(path)
        except MetadataUnavailable as e:
            logger.debug(f"{source.name} unavailable for {path}: {e}")
            continue
        except Exception as e:
            # Third-party readers raise arbitrary errors on corrupt input
            logger.debug(f"{source.name} failed for {path}: {e}")
            continue

        if value is not None:
            logger.debug(f"Date taken: {path}[{source.name}] = {value}")
            return value

        logger.debug(f"{source.name} has no date for {path}")

    return None


class _LazyRead:
    """Open a metadata container once and share it between sources.

    An opening failure is remembered and re-raised as MetadataUnavailable
    for every source that depends on it.
    """

    def __init__(self, load: Callable[[], Any]):
        self._load = load
        self._loaded = False
        self._value: Any = None
        self._error: Optional[Exception] = None

    def get(self) -> Any:
        if not self._loaded:
            self._loaded = True
            try:
                self._value = self._load()
            except Exception as e:
                self._error = e
        if self._error is not None:
            raise MetadataUnavailable(str(self._error)) from self._error
        return self._value


def file_timestamp_source(file_ops: FileOperations) -> DateSource:
    """Final fallback: the filesystem last-write time."""

    def read(path: Path) -> Optional[datetime]:
        try:
            return file_ops.last_write_time(path)
        except OSError as e:
            raise MetadataUnavailable(f"Cannot stat file: {e}") from e

    return DateSource("file timestamp", read)


class PhotoDateResolver:
    """EXIF original, digitized and generic dates, then file timestamp."""

    def __init__(self, reader: Optional[PhotoMetadataReader] = None,
                 file_ops: Optional[FileOperations] = None):
        self.reader = reader or PhotoMetadataReader()
        self.file_ops = file_ops or FileOperations()

    def sources(self, path: Path) -> List[DateSource]:
        """Build the fallback chain for one image."""
        fields = _LazyRead(lambda: self.reader.read(path))

        def exif_field(field_name: str) -> DateSource:
            return DateSource(
                f"EXIF {field_name}",
                lambda p: parse_exif_datetime(fields.get().get(field_name))
            )

        chain = [exif_field(name) for name in PHOTO_DATE_FIELDS]
        chain.append(file_timestamp_source(self.file_ops))
        return chain

    def resolve(self, path: Path) -> Optional[datetime]:
        """Resolve the capture date; None only if the file cannot be read at all."""
        return first_available_date(path, self.sources(path))


class VideoDateResolver:
    """Shell properties, container tags, then file timestamp."""

    def __init__(self, shell: Optional[ShellMetadataProvider] = None,
                 container_reader: Optional[ContainerTagReader] = None,
                 file_ops: Optional[FileOperations] = None):
        self.shell = shell if shell is not None else default_shell_provider()
        self.container_reader = container_reader or ContainerTagReader()
        self.file_ops = file_ops or FileOperations()

    def _shell_property(self, name: str) -> DateSource:
        def read(path: Path) -> Optional[datetime]:
            return parse_shell_date(self.shell.get_property(path.parent, path.name, name))

        return DateSource(f"shell {name!r}", read)

    def sources(self, path: Path) -> List[DateSource]:
        """Build the fallback chain for one video."""
        tags = _LazyRead(lambda: self.container_reader.read(path))

        def tag_year(p: Path) -> Optional[datetime]:
            year = tags.get().year
            if year is None or not MIN_TAG_YEAR < year < MAX_TAG_YEAR:
                return None
            # Year-only precision: pin to January 1
            return datetime(year, 1, 1)

        return [
            self._shell_property(MEDIA_CREATED),
            self._shell_property(DATE_TAKEN),
            DateSource(
                "container creationdate",
                lambda p: parse_container_date(
                    tags.get().dash_box(QUICKTIME_NAMESPACE, QUICKTIME_CREATIONDATE))
            ),
            DateSource(
                "container date tagged",
                lambda p: parse_container_date(tags.get().date_tagged)
            ),
            DateSource("container year", tag_year),
            file_timestamp_source(self.file_ops),
        ]

    def resolve(self, path: Path) -> Optional[datetime]:
        """Resolve the recording date; None only if the file cannot be read at all."""
        return first_available_date(path, self.sources(path))


_photo_resolver: Optional[PhotoDateResolver] = None
_video_resolver: Optional[VideoDateResolver] = None


def resolve_photo_date(path: Path) -> Optional[datetime]:
    """Resolve a photo's capture date with the default collaborators."""
    global _photo_resolver
    if _photo_resolver is None:
        _photo_resolver = PhotoDateResolver()
    return _photo_resolver.resolve(Path(path))


def resolve_video_date(path: Path) -> Optional[datetime]:
    """Resolve a video's recording date with the default collaborators."""
    global _video_resolver
    if _video_resolver is None:
        _video_resolver = VideoDateResolver()
    return _video_resolver.resolve(Path(path))
