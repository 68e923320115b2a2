"""
Cancellation token.

A caller owned signal that long running loops wait on.
The drain loop uses wait as its timer-or-cancel choice: the call returns
after the timeout, or early when cancel is called from another thread.
"""

from __future__ import annotations

import threading


class CancellationToken:
    """Thread safe, one shot cancellation signal."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        """Fire the signal. Calling it again has no effect."""
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: float) -> bool:
        """
        Block for up to timeout seconds.

        Returns True when cancellation fired, False when the timer elapsed.
        """
        return self._event.wait(timeout)
