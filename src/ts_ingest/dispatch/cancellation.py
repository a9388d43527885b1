"""
Cancellation for a running import.

A CancellationToken is checked before every network call. Its remaining
time is handed to the collaborator as the request timeout so a deadline
bounds the whole run, not just single requests.
"""

import threading
import time
from typing import Optional

from ..ingestion.exceptions import ImportCancelledError


class CancellationToken:
    """
    Explicit cancel flag plus optional deadline.

    Usage:
        token = CancellationToken(timeout_seconds=30)
        token.check()                 # raises once cancelled or expired
        client.query(cmd, timeout=token.remaining())
    """

    def __init__(self, timeout_seconds: Optional[float] = None):
        self._event = threading.Event()
        self._deadline = (
            time.monotonic() + timeout_seconds
            if timeout_seconds is not None
            else None
        )

    def cancel(self) -> None:
        """Request cancellation; safe to call from another thread."""
        self._event.set()

    @property
    def cancelled(self) -> bool:
        """True once cancel() was called or the deadline passed."""
        if self._event.is_set():
            return True
        return self._deadline is not None and time.monotonic() >= self._deadline

    def remaining(self) -> Optional[float]:
        """Seconds left before the deadline, or None without a deadline."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def check(self) -> None:
        """
        Raise if the import should stop.

        Raises:
            ImportCancelledError: If cancelled or past the deadline
        """
        if self._event.is_set():
            raise ImportCancelledError("import cancelled")
        if self._deadline is not None and time.monotonic() >= self._deadline:
            raise ImportCancelledError("import deadline exceeded")
