"""
Deadline - cancellation and timeout signal for account operations.

A Deadline is created by the caller (an HTTP request, the startup routine)
and passed down through the workflow into the store and the connection
bootstrapper. Children share their parent's cancellation flag and can only
shorten its expiry, never extend it.
"""

import threading
import time

from .exceptions import OperationCancelled


class Deadline:
    """
    Cancellation flag plus an optional monotonic expiry.

    A Deadline with no timeout and no parent never expires on its own,
    but can still be cancelled.
    """

    def __init__(self, timeout: float | None = None, parent: "Deadline | None" = None) -> None:
        """
        Initialize deadline.

        Args:
            timeout: Seconds from now until expiry, None for no limit
            parent: Deadline to inherit cancellation and expiry from
        """
        self._cancelled = parent._cancelled if parent is not None else threading.Event()

        expires_at = None if timeout is None else time.monotonic() + timeout
        if parent is not None and parent._expires_at is not None:
            if expires_at is None or parent._expires_at < expires_at:
                expires_at = parent._expires_at
        self._expires_at = expires_at

    def cancel(self) -> None:
        """Cancel this deadline and every deadline sharing its flag."""
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    @property
    def expired(self) -> bool:
        """True once cancelled or past the expiry time."""
        if self._cancelled.is_set():
            return True
        return self._expires_at is not None and time.monotonic() >= self._expires_at

    def remaining(self) -> float | None:
        """Seconds left before expiry, None if unbounded."""
        if self._expires_at is None:
            return None
        return max(self._expires_at - time.monotonic(), 0.0)

    def clamp(self, seconds: float) -> float:
        """Return the smaller of `seconds` and the time remaining."""
        remaining = self.remaining()
        if remaining is None:
            return seconds
        return min(seconds, remaining)

    def check(self, op: str) -> None:
        """
        Short-circuit if the deadline is no longer live.

        Raises:
            OperationCancelled: If cancelled or expired
        """
        if self.expired:
            reason = "cancelled" if self.cancelled else "deadline exceeded"
            raise OperationCancelled(reason, op=op)

    def sleep(self, seconds: float) -> bool:
        """
        Wait up to `seconds`, waking early on cancellation or expiry.

        Returns:
            True if the deadline is still live after waiting
        """
        if self.expired:
            return False
        self._cancelled.wait(timeout=self.clamp(seconds))
        return not self.expired
