"""
Reporters receive the engine's ordered log and progress events.

The engine calls a reporter from its worker thread, once per event and in
order. Anything that must reach another thread is the reporter's job.
"""

from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterator, List, Optional, Protocol

from rich.console import Console
from rich.progress import Progress, TaskID

from .constants import DEFAULT_MAX_LOG_ENTRIES


class Reporter(Protocol):
    def on_log_entry(self, message: str, is_highlight: bool = False) -> None:
        ...

    def on_progress(self, processed_count: int, error_count: int) -> None:
        ...


@dataclass(frozen=True)
class LogEntry:
    message: str
    is_highlight: bool = False
    timestamp: datetime = field(default_factory=datetime.now)

    def render(self) -> str:
        return f"[{self.timestamp:%H:%M:%S}] {self.message}"


class LogBuffer:
    """Fixed-capacity log ring; the oldest entry is evicted when full."""

    def __init__(self, capacity: int = DEFAULT_MAX_LOG_ENTRIES):
        if capacity < 1:
            raise ValueError(f"Log capacity must be positive, got {capacity}")
        self._entries: deque = deque(maxlen=capacity)

    @property
    def capacity(self) -> int:
        return self._entries.maxlen

    def append(self, entry: LogEntry) -> None:
        self._entries.append(entry)

    def messages(self) -> List[str]:
        return [entry.message for entry in self._entries]

    def __iter__(self) -> Iterator[LogEntry]:
        return iter(list(self._entries))


class BufferedReporter:
    """Keeps the latest log entries and counters of a run."""

    def __init__(self, capacity: int = DEFAULT_MAX_LOG_ENTRIES):
        self.log = LogBuffer(capacity)
        self.processed_count = 0
        self.error_count = 0

    def on_log_entry(self, message: str, is_highlight: bool = False) -> LogEntry:
        entry = LogEntry(message, is_highlight)
        self.log.append(entry)
        return entry

    def on_progress(self, processed_count: int, error_count: int) -> None:
        self.processed_count = processed_count
        self.error_count = error_count


class ConsoleReporter(BufferedReporter):
    """Prints log lines to a rich console and drives an optional progress task.

    The traversal is streamed, so the task has no total; it only counts
    files handled and shows the running totals in its description.
    """

    def __init__(self, console: Console, progress: Optional[Progress] = None,
                 task: Optional[TaskID] = None, capacity: int = DEFAULT_MAX_LOG_ENTRIES):
        super().__init__(capacity)
        self.console = console
        self.progress = progress
        self.task = task

    def on_log_entry(self, message: str, is_highlight: bool = False) -> LogEntry:
        entry = super().on_log_entry(message, is_highlight)
        self.console.print(entry.render(), style="bold" if is_highlight else None,
                           markup=False, highlight=False)
        return entry

    def on_progress(self, processed_count: int, error_count: int) -> None:
        super().on_progress(processed_count, error_count)
        if self.progress is None or self.task is None:
            return
        self.progress.update(
            self.task, advance=1,
            description=f"Processing... {processed_count} files moved, {error_count} errors"
        )
