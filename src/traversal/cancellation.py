"""
Cooperative cancellation signal polled by traversals.
"""
import threading


class CancellationToken:
    """Externally triggerable flag; safe to set from another thread or a signal handler."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        """Request cancellation."""
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def __repr__(self) -> str:
        return f"CancellationToken(cancelled={self.is_cancelled})"
