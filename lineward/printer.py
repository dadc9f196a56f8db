"""Print messages from other threads while a line is being edited."""

from __future__ import annotations

import queue
from typing import Generic, Optional, TypeVar

EXTERNAL_PRINTER_DEFAULT_CAPACITY = 20

T = TypeVar("T")


class ExternalPrinter(Generic[T]):
    """A bounded, thread-safe channel of lines to print above the prompt.

    Each message is printed as a new line; editing continues below it.
    """

    def __init__(self, max_cap: int = EXTERNAL_PRINTER_DEFAULT_CAPACITY) -> None:
        if max_cap < 1:
            raise ValueError("capacity must be at least 1")
        self._queue: "queue.Queue[T]" = queue.Queue(maxsize=max_cap)

    def sender(self) -> "queue.Queue[T]":
        """Return the channel to send lines into from elsewhere."""
        return self._queue

    def receiver(self) -> "queue.Queue[T]":
        """Return the channel messages are received from."""
        return self._queue

    def print(self, line: T) -> None:
        """Queue a line, blocking while the printer is full."""
        self._queue.put(line)

    def get_line(self) -> Optional[T]:
        """Return the next queued line, or ``None`` without blocking."""
        try:
            return self._queue.get_nowait()
        except queue.Empty:
            return None