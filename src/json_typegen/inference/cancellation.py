"""Cooperative cancellation for inference passes."""

from __future__ import annotations

import threading

from ..exceptions import InferenceCancelledError


class CancellationToken:
    """Thread-safe cancellation flag checked at every inference step.

    Checking never blocks or yields; a pass on a worker thread sees a
    `cancel()` from the event loop at its next checkpoint.
    """

    __slots__ = ("_event", "_reason")

    def __init__(self) -> None:
        self._event = threading.Event()
        self._reason = "Inference cancelled"

    def cancel(self, reason: str | None = None) -> None:
        if reason:
            self._reason = reason
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise InferenceCancelledError(self._reason)


class _NeverCancelled(CancellationToken):
    __slots__ = ()

    def cancel(self, reason: str | None = None) -> None:
        raise RuntimeError("The shared never-cancelled token cannot be cancelled")


NEVER_CANCELLED: CancellationToken = _NeverCancelled()
