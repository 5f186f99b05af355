"""Caller-supplied deadline and cancellation signal for a single pipeline run."""

import threading
import time
from typing import Optional

from .exceptions import PipelineCancelledError


class Deadline:
    """
    Bounds a pipeline run by wall time and/or an external cancel event.

    Both limits are optional; a Deadline with neither never expires.
    """

    def __init__(
        self,
        timeout_seconds: Optional[float] = None,
        cancel_event: Optional[threading.Event] = None,
        clock=time.monotonic
    ):
        self._clock = clock
        self._expires_at = clock() + timeout_seconds if timeout_seconds is not None else None
        self.cancel_event = cancel_event

    def remaining(self) -> Optional[float]:
        """Seconds left before expiry, or None when no timeout was set."""
        if self._expires_at is None:
            return None
        return max(0.0, self._expires_at - self._clock())

    def expired(self) -> bool:
        if self.cancel_event is not None and self.cancel_event.is_set():
            return True
        remaining = self.remaining()
        return remaining is not None and remaining <= 0

    def check(self, stage: str) -> None:
        """
        Raise if the run must stop.

        Args:
            stage: Name of the stage about to run, used in the error message

        Raises:
            PipelineCancelledError: If cancelled or past the deadline
        """
        if self.cancel_event is not None and self.cancel_event.is_set():
            raise PipelineCancelledError(f"Cancelled before {stage}")
        if self.expired():
            raise PipelineCancelledError(f"Deadline exceeded before {stage}")

    def bound_timeout(self, timeout: float) -> float:
        """Clamp an I/O timeout so it does not outlive the deadline."""
        remaining = self.remaining()
        if remaining is None:
            return timeout
        return max(0.001, min(timeout, remaining))
