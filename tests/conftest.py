"""
pytest configuration and fixtures for mediasort tests.
"""

import io
import locale
import os
import sys
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

import pytest
from PIL import ExifTags, Image

from mediasort.classifier import ItemClassifier
from mediasort.core import OrganizerEngine
from mediasort.errors import MetadataUnavailable
from mediasort.file_operations import FileOperations
from mediasort.metadata import ContainerTags, ExifFields, NullShellMetadata
from mediasort.models import MediaKind
from mediasort.resolvers import PhotoDateResolver, VideoDateResolver
from mediasort.timestamps import set_default_timezone


@dataclass
class CliResult:
    """Result from running CLI command."""
    exit_code: int
    output: str
    error: str


class RecordingReporter:
    """Reporter that records every event in order."""

    def __init__(self):
        self.events = []

    def on_log_entry(self, message: str, is_highlight: bool = False) -> None:
        self.events.append(("log", message, is_highlight))

    def on_progress(self, processed_count: int, error_count: int) -> None:
        self.events.append(("progress", processed_count, error_count))

    @property
    def messages(self) -> List[str]:
        return [event[1] for event in self.events if event[0] == "log"]

    @property
    def progress(self) -> List[tuple]:
        return [event[1:] for event in self.events if event[0] == "progress"]


class FakePhotoReader:
    """Photo metadata reader serving EXIF fields by file name."""

    def __init__(self, fields_by_name: Optional[Dict[str, Dict[str, str]]] = None):
        self.fields_by_name = fields_by_name or {}
        self.calls = 0

    def read(self, path: Path) -> ExifFields:
        self.calls += 1
        return ExifFields(self.fields_by_name.get(path.name, {}))


class FakeShell:
    """Shell metadata provider serving properties by file name."""

    def __init__(self, properties: Optional[Dict[str, Dict[str, str]]] = None,
                 error: Optional[Exception] = None):
        self.properties = properties or {}
        self.error = error

    def get_property(self, directory: Path, filename: str, name: str) -> Optional[str]:
        if self.error is not None:
            raise self.error
        return self.properties.get(filename, {}).get(name)


class FakeContainerReader:
    """Container tag reader serving tags by file name; unknown files are unreadable."""

    def __init__(self, tags_by_name: Optional[Dict[str, Dict[str, str]]] = None):
        self.tags_by_name = tags_by_name or {}
        self.calls = 0

    def read(self, path: Path) -> ContainerTags:
        self.calls += 1
        if path.name not in self.tags_by_name:
            raise MetadataUnavailable(f"no container tags for {path.name}")
        return ContainerTags({k.lower(): v for k, v in self.tags_by_name[path.name].items()})


def set_mtime(path: Path, when: datetime) -> None:
    timestamp = when.timestamp()
    os.utime(path, (timestamp, timestamp))


@pytest.fixture(autouse=True)
def reset_default_timezone():
    """Keep the module-level default timezone from leaking between tests."""
    set_default_timezone(None)
    yield
    set_default_timezone(None)


@pytest.fixture(autouse=True)
def restore_time_locale():
    """Keep LC_TIME changes made by the CLI from leaking between tests."""
    saved = locale.setlocale(locale.LC_TIME)
    yield
    locale.setlocale(locale.LC_TIME, saved)


@pytest.fixture
def reporter():
    return RecordingReporter()


@pytest.fixture
def make_engine():
    """Build an engine with fake metadata collaborators."""

    def build(photo_fields: Optional[Dict[str, Dict[str, str]]] = None,
              shell: Optional[object] = None,
              container_tags: Optional[Dict[str, Dict[str, str]]] = None,
              file_ops: Optional[FileOperations] = None) -> OrganizerEngine:
        file_ops = file_ops or FileOperations()
        classifier = ItemClassifier({
            MediaKind.PHOTO: PhotoDateResolver(reader=FakePhotoReader(photo_fields),
                                               file_ops=file_ops),
            MediaKind.VIDEO: VideoDateResolver(shell=shell or NullShellMetadata(),
                                               container_reader=FakeContainerReader(container_tags),
                                               file_ops=file_ops),
        })
        return OrganizerEngine(classifier=classifier, file_ops=file_ops)

    return build


@pytest.fixture
def make_photo(tmp_path):
    """Write a small JPEG with the given EXIF date fields."""

    def create(name: str, original: Optional[str] = None, digitized: Optional[str] = None,
               generic: Optional[str] = None, directory: Optional[Path] = None) -> Path:
        directory = directory or tmp_path / "photos"
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / name

        exif = Image.Exif()
        if original is not None:
            exif[ExifTags.Base.DateTimeOriginal] = original
        if digitized is not None:
            exif[ExifTags.Base.DateTimeDigitized] = digitized
        if generic is not None:
            exif[ExifTags.Base.DateTime] = generic

        Image.new("RGB", (8, 8), color=(200, 120, 40)).save(path, "JPEG", exif=exif)
        return path

    return create


@pytest.fixture
def test_config_path(tmp_path):
    """Test-specific config path in a clean program root."""
    root = tmp_path / "mediasort_test_config"
    root.mkdir()
    return root / "config.yml"


@pytest.fixture
def create_test_files(tmp_path):
    """Helper to create test files with specific properties."""

    def create_files(file_specs: List[dict], root_name: str = "test_files") -> Path:
        """Create test files based on specifications.

        Args:
            file_specs: List of dicts with keys:
                - name: path relative to the returned directory
                - content: file content (optional)
                - mtime: modification time as datetime (optional)

        Returns:
            Path to directory containing created files
        """
        test_dir = tmp_path / root_name
        test_dir.mkdir(exist_ok=True)

        for spec in file_specs:
            file_path = test_dir / spec['name']
            file_path.parent.mkdir(parents=True, exist_ok=True)

            content = spec.get('content', b'test file content')
            if isinstance(content, str):
                file_path.write_text(content)
            else:
                file_path.write_bytes(content)

            if 'mtime' in spec:
                set_mtime(file_path, spec['mtime'])

        return test_dir

    return create_files


@pytest.fixture
def assert_file_structure():
    """Helper to assert the files inside each date folder."""

    def check_structure(base_path: Path, expected_structure: Dict[str, List[str]]):
        """Assert that each named folder holds exactly the expected files.

        Args:
            base_path: Destination root to check
            expected_structure: e.g. {"2024-01-15": ["a.jpg", "a_1.jpg"]}
        """
        for name, expected_files in expected_structure.items():
            folder = base_path / name
            assert folder.is_dir(), f"Expected {folder} to be a directory"
            actual_files = sorted(f.name for f in folder.iterdir() if f.is_file())
            assert actual_files == sorted(expected_files), \
                f"Expected files {sorted(expected_files)} in {folder}, got {actual_files}"

    return check_structure


@pytest.fixture
def cli_runner():
    """Create a CLI runner that captures output and uses test config."""

    def run_cli(*args, config_path=None):
        """Run mediasort CLI with given arguments.

        Returns:
            CliResult with exit_code, output, and error
        """
        from mediasort.cli import main
        from mediasort.constants import get_console

        old_stdout = sys.stdout
        old_stderr = sys.stderr
        stdout = io.StringIO()
        stderr = io.StringIO()

        console = get_console()
        original_input = console.input

        try:
            sys.stdout = stdout
            sys.stderr = stderr

            # Default to "no" for confirmation prompts to avoid hanging
            console.input = lambda prompt="": "n"

            exit_code = main([str(a) for a in args], config_path=config_path)

            return CliResult(
                exit_code=exit_code,
                output=stdout.getvalue(),
                error=stderr.getvalue()
            )
        except SystemExit as e:
            return CliResult(
                exit_code=e.code if e.code is not None else 0,
                output=stdout.getvalue(),
                error=stderr.getvalue()
            )
        finally:
            sys.stdout = old_stdout
            sys.stderr = old_stderr
            console.input = original_input

    return run_cli
