"""
Background worker running one organize run at a time.
"""

import threading
from pathlib import Path
from typing import Optional

from .constants import PROGRAM, get_logger
from .core import CancellationToken, OrganizerEngine
from .errors import RunInProgressError
from .models import RunSummary
from .reporting import Reporter


class OrganizerWorker:
    """Runs the engine on a single background thread.

    The caller keeps control while the traversal runs; it can cancel the
    run cooperatively and wait for the summary. Starting a second run
    while one is active raises RunInProgressError.
    """

    def __init__(self, engine: Optional[OrganizerEngine] = None):
        self.engine = engine or OrganizerEngine()
        self.logger = get_logger()
        self.token: Optional[CancellationToken] = None
        self._thread: Optional[threading.Thread] = None
        self._summary: Optional[RunSummary] = None
        self._error: Optional[BaseException] = None
        self._lock = threading.Lock()

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self, source: Path, dest: Path, reporter: Reporter) -> CancellationToken:
        """Start a run in the background and return its cancellation token."""
        with self._lock:
            if self.is_running:
                raise RunInProgressError("An organize run is already in progress")

            self.token = CancellationToken()
            self._summary = None
            self._error = None
            self._thread = threading.Thread(
                target=self._work, args=(Path(source), Path(dest), self.token, reporter),
                name=f"{PROGRAM}-worker", daemon=True
            )
            self._thread.start()
            return self.token

    def _work(self, source: Path, dest: Path, token: CancellationToken,
              reporter: Reporter) -> None:
        try:
            self._summary = self.engine.run(source, dest, token, reporter)
        except Exception as e:
            self.logger.exception(f"Organize run failed: {e}")
            self._error = e

    def cancel(self) -> None:
        """Request cooperative cancellation of the active run."""
        if self.token is not None:
            self.token.cancel()

    def wait(self, timeout: Optional[float] = None) -> Optional[RunSummary]:
        """Wait for the run to finish; None if it is still running after timeout.

        Re-raises any unexpected error that ended the run.
        """
        if self._thread is None:
            return self._summary

        self._thread.join(timeout)
        if self._thread.is_alive():
            return None
        if self._error is not None:
            raise self._error
        return self._summary
