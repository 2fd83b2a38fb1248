"""
Adapters for the metadata providers the date resolvers consult.

Each adapter only reads raw values; parsing and fallback policy live in
the resolvers. Failures surface as exceptions and are absorbed there.
"""

import json
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional, Protocol

from PIL import ExifTags, Image

from .constants import DATE_TAKEN, MEDIA_CREATED, ffprobe_available, mdls_available
from .errors import MetadataUnavailable

# EXIF date fields by name; DateTime lives in IFD0, the others in the Exif sub-IFD
EXIF_DATE_TAGS: Dict[str, int] = {
    "DateTimeOriginal": ExifTags.Base.DateTimeOriginal,
    "DateTimeDigitized": ExifTags.Base.DateTimeDigitized,
    "DateTime": ExifTags.Base.DateTime,
}

# Spotlight attributes standing in for the shell property names
MDLS_ATTRIBUTES: Dict[str, str] = {
    MEDIA_CREATED: "kMDItemRecordingDate",
    DATE_TAKEN: "kMDItemContentCreationDate",
}


class ExifFields:
    """Raw EXIF date fields read from one image."""

    def __init__(self, values: Optional[Dict[str, str]] = None):
        self._values = dict(values or {})

    def get(self, name: str) -> Optional[str]:
        return self._values.get(name)


class PhotoMetadataReader:
    """Reads EXIF date fields with Pillow."""

    def read(self, path: Path) -> ExifFields:
        """Open the image and collect its raw EXIF date fields.

        Raises whatever Pillow raises for unreadable or unsupported files.
        """
        values: Dict[str, str] = {}
        with Image.open(path) as image:
            exif = image.getexif()
            exif_ifd = exif.get_ifd(ExifTags.IFD.Exif)

            for name, tag in EXIF_DATE_TAGS.items():
                value = exif_ifd.get(tag, exif.get(tag))
                if value is None:
                    continue
                if isinstance(value, bytes):
                    value = value.decode("ascii", errors="replace")
                values[name] = str(value)

        return ExifFields(values)


class ShellMetadataProvider(Protocol):
    """Platform shell metadata, looked up by property display name."""

    def get_property(self, directory: Path, filename: str, name: str) -> Optional[str]:
        ...


class NullShellMetadata:
    """Provider for platforms without a shell metadata service."""

    def get_property(self, directory: Path, filename: str, name: str) -> Optional[str]:
        return None


class MdlsShellMetadata:
    """macOS Spotlight metadata via the mdls command."""

    def get_property(self, directory: Path, filename: str, name: str) -> Optional[str]:
        attribute = MDLS_ATTRIBUTES.get(name)
        if attribute is None:
            return None

        result = subprocess.run(
            ["mdls", "-raw", "-name", attribute, str(directory / filename)],
            capture_output=True, text=True, check=True
        )

        value = result.stdout.strip()
        if not value or value == "(null)":
            return None
        return value


def default_shell_provider(enabled: bool = True) -> ShellMetadataProvider:
    """Pick the shell metadata provider for this platform."""
    if enabled and mdls_available:
        return MdlsShellMetadata()
    return NullShellMetadata()


@dataclass(frozen=True)
class ContainerTags:
    """Container-level tags of one video file (keys lowercased)."""

    tags: Dict[str, str] = field(default_factory=dict)

    def dash_box(self, namespace: str, name: str) -> Optional[str]:
        """Look up a vendor metadata box such as com.apple.quicktime.creationdate."""
        return self.tags.get(f"{namespace}.{name}".lower())

    @property
    def date_tagged(self) -> Optional[str]:
        return self.tags.get("creation_time") or self.tags.get("date")

    @property
    def year(self) -> Optional[int]:
        raw = self.tags.get("year") or self.tags.get("date") or ""
        digits = raw.strip()[:4]
        if len(digits) == 4 and digits.isdigit():
            return int(digits)
        return None


class ContainerTagReader:
    """Reads container tags from the ffprobe JSON format section."""

    def __init__(self, available: Optional[bool] = None):
        self.available = ffprobe_available if available is None else available

    def read(self, path: Path) -> ContainerTags:
        if not self.available:
            raise MetadataUnavailable("ffprobe is not available")

        try:
            result = subprocess.run([
                "ffprobe", "-v", "quiet",
                "-print_format", "json",
                "-show_format",
                str(path)
            ], capture_output=True, text=True, check=True)
            data = json.loads(result.stdout)
        except subprocess.CalledProcessError as e:
            raise MetadataUnavailable(f"ffprobe failed for {path}: {e}") from e
        except json.JSONDecodeError as e:
            raise MetadataUnavailable(f"Bad ffprobe output for {path}: {e}") from e
        except OSError as e:
            raise MetadataUnavailable(f"Could not run ffprobe for {path}: {e}") from e

        tags = data.get("format", {}).get("tags", {}) or {}
        return ContainerTags({str(k).lower(): str(v) for k, v in tags.items()})
