"""Cooperative cancellation and progress reporting."""
from __future__ import annotations

import threading
from typing import Callable, Optional

from .errors import ResolutionCancelled


class TaskMonitor:
    """
    Cancellation flag plus an optional progress callback.

    The callback receives (message, current, total), same as the progress
    callbacks used by the GUI front ends.
    """

    def __init__(self, progress_callback: Optional[Callable[[str, int, int], None]] = None):
        self.progress_callback = progress_callback
        self._cancelled = threading.Event()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def cancel(self):
        self._cancelled.set()

    def check_cancelled(self):
        """Raise ResolutionCancelled if cancel() has been called."""
        if self._cancelled.is_set():
            raise ResolutionCancelled("Symbol resolution cancelled")

    def report_progress(self, message: str, current: int = 0, total: int = 0):
        """Report progress to callback if available."""
        if self.progress_callback:
            try:
                self.progress_callback(message, current, total)
            except Exception:
                pass
