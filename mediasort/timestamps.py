"""Shared functions for parsing date-time strings.

Every parser returns a naive datetime in local wall time, or None when the
text does not hold a usable date. Offset-bearing values are converted to
the default timezone (system local time unless configured otherwise).
"""

import unicodedata
import zoneinfo
from datetime import datetime, tzinfo
from typing import Optional, Tuple, Union

from .constants import get_logger

logger = get_logger()

# Raw EXIF ASCII date, e.g. "2021:05:03 10:15:00"
EXIF_DATE_FORMAT = "%Y:%m:%d %H:%M:%S"
EXIF_DATE_LENGTH = 19

# Container tag formats, tried in order before the general ISO parse
CONTAINER_DATE_FORMATS: Tuple[str, ...] = (
    "%Y-%m-%dT%H:%M:%S%z",      # ISO 8601 with offset
    "%Y-%m-%dT%H:%M:%S.%f%z",   # ISO 8601 with fractional seconds
    "%Y-%m-%dT%H:%M:%SZ",       # ISO 8601 UTC
    "%Y-%m-%dT%H:%M:%S",        # ISO 8601 without offset
    "%Y-%m-%d %H:%M:%S",        # space separated
    "%Y:%m:%d %H:%M:%S",        # EXIF style
    "%Y-%m-%d",                 # date only
    "%Y",                       # year only
)

# Shell providers localise their output: current locale first...
LOCALE_DATE_FORMATS: Tuple[str, ...] = (
    "%c",
    "%x %X",
    "%x %H:%M",
    "%x %I:%M %p",
    "%x",
)

# ...then a neutral culture
INVARIANT_DATE_FORMATS: Tuple[str, ...] = (
    "%m/%d/%Y %H:%M:%S",
    "%m/%d/%Y %H:%M",
    "%m/%d/%Y %I:%M:%S %p",
    "%m/%d/%Y %I:%M %p",
    "%m/%d/%Y",
    "%Y-%m-%d %H:%M:%S %z",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%dT%H:%M:%S%z",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%d",
)

# Directionality marks that shell providers embed in localised dates
DIRECTIONAL_MARKS = ("\u200e", "\u200f")

_default_tz: Optional[tzinfo] = None


def set_default_timezone(name: Optional[str]) -> None:
    """Set the IANA timezone offset-bearing dates are converted to.

    Passing None restores system local time. Raises
    zoneinfo.ZoneInfoNotFoundError for unknown names.
    """
    global _default_tz
    _default_tz = zoneinfo.ZoneInfo(name) if name else None


def to_local_naive(value: datetime) -> datetime:
    """Convert an aware datetime to naive wall time in the default timezone."""
    if value.tzinfo is None:
        return value
    return value.astimezone(_default_tz).replace(tzinfo=None)


def parse_exif_datetime(raw: Union[str, bytes, None]) -> Optional[datetime]:
    """Parse a raw EXIF date field with an exact format match."""
    if raw is None:
        return None
    if isinstance(raw, bytes):
        raw = raw.decode("ascii", errors="replace")

    text = raw.strip("\x00 ")
    if len(text) != EXIF_DATE_LENGTH:
        return None

    try:
        return datetime.strptime(text, EXIF_DATE_FORMAT)
    except ValueError:
        return None


def scrub_shell_date(raw: str) -> str:
    """Remove invisible control and directionality characters."""
    return "".join(
        c for c in raw
        if c not in DIRECTIONAL_MARKS and unicodedata.category(c) not in ("Cc", "Cf")
    ).strip()


def _parse_with_formats(text: str, formats: Tuple[str, ...]) -> Optional[datetime]:
    for fmt in formats:
        try:
            return to_local_naive(datetime.strptime(text, fmt))
        except ValueError:
            continue
    return None


def parse_shell_date(raw: Optional[str]) -> Optional[datetime]:
    """Parse a localised shell date under the current locale, then a neutral one."""
    if not raw or not raw.strip():
        return None

    text = scrub_shell_date(raw)
    if not text:
        return None

    parsed = _parse_with_formats(text, LOCALE_DATE_FORMATS)
    if parsed:
        return parsed

    parsed = _parse_with_formats(text, INVARIANT_DATE_FORMATS)
    if parsed:
        return parsed

    logger.debug(f"Unparsable shell date: {text!r}")
    return None


def parse_container_date(raw: Optional[str]) -> Optional[datetime]:
    """Parse a container tag date against the known formats, then ISO 8601."""
    if not raw or not raw.strip():
        return None

    text = raw.strip()
    parsed = _parse_with_formats(text, CONTAINER_DATE_FORMATS)
    if parsed:
        return parsed

    # General locale-agnostic parse as last resort
    try:
        return to_local_naive(datetime.fromisoformat(text))
    except ValueError:
        logger.debug(f"Unparsable container date: {text!r}")
        return None
