"""Cooperative cancellation for walks and size calculations."""

from __future__ import annotations

import threading


class ScanCancelled(Exception):
    """Raised when a walk or size calculation notices its token was cancelled.

    When raised from a size calculation, ``size`` and ``file_count`` hold
    whatever had been accumulated before the cancellation was noticed.
    """

    def __init__(self, message: str = "scan cancelled", *, size: int = 0, file_count: int = 0) -> None:
        super().__init__(message)
        self.size = size
        self.file_count = file_count


class CancelToken:
    """A one-way cancellation flag shared between the control loop and workers."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise ScanCancelled()
