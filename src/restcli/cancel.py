"""Cooperative cancellation shared by the transport, auth and pagination."""

from __future__ import annotations

import threading

from restcli.exceptions import CancelledError_


class CancelToken:
    """A one-shot cancellation signal.

    The CLI sets it from its SIGINT handler; the pipeline checks it before
    each page, between response body chunks and while an auth command runs.
    Safe to share between threads.
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: float) -> bool:
        """Block up to *timeout* seconds; return True if cancelled meanwhile."""
        return self._event.wait(timeout)

    def raise_if_cancelled(self, during: str = "request") -> None:
        """Raise :class:`~restcli.exceptions.CancelledError_` once cancelled."""
        if self._event.is_set():
            raise CancelledError_(f"Cancelled during {during}")
