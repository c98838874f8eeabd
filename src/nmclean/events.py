"""Events passed from worker threads to the UI thread.

Every producer (scanner, clock, deletion workers) communicates with the
session exclusively by sending immutable event values through one
:class:`EventChannel`. Only the UI thread receives from it.
"""

import queue
import threading
from pathlib import Path
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class ChannelClosed(Exception):
    """Raised when sending to, or receiving from, a closed channel."""


class _Event(BaseModel):
    model_config = ConfigDict(frozen=True)


# Scanner events


class ScanStarted(_Event):
    pass


class ScanProgress(_Event):
    visited: int = Field(..., description="Entries visited so far")


class EntryFound(_Event):
    path: Path
    size: int = 0


class ScanFinished(_Event):
    visited: int
    found: int


# Deletion events


class Deleting(_Event):
    path: Path
    size: int = 0


class Deleted(_Event):
    path: Path
    size: int = 0


class DeleteFailed(_Event):
    path: Path
    size: int = 0
    error: str = ""


# Terminal events


class Tick(_Event):
    pass


class KeyPressed(_Event):
    key: str
    character: Optional[str] = None


class Resize(_Event):
    width: int
    height: int


Event = Union[
    ScanStarted,
    ScanProgress,
    EntryFound,
    ScanFinished,
    Deleting,
    Deleted,
    DeleteFailed,
    Tick,
    KeyPressed,
    Resize,
]


class EventChannel:
    """Unbounded multi-producer, single-consumer event queue."""

    def __init__(self):
        self._queue: queue.SimpleQueue = queue.SimpleQueue()
        self._closed = threading.Event()

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def send(self, event: Event) -> None:
        """Enqueue an event. Never blocks."""
        if self.closed:
            raise ChannelClosed("channel is closed")
        self._queue.put(event)

    def recv(self, timeout: float | None = None) -> Event:
        """
        Block until the next event arrives.

        Args:
            timeout: Seconds to wait, or None to wait forever

        Raises:
            ChannelClosed: The channel was closed; pending events are dropped
            queue.Empty: No event arrived within ``timeout``
        """
        if self.closed:
            raise ChannelClosed("channel is closed")
        event = self._queue.get(timeout=timeout)
        if event is None or self.closed:
            raise ChannelClosed("channel is closed")
        return event

    def close(self) -> None:
        """Close the channel and wake a blocked receiver."""
        if not self.closed:
            self._closed.set()
            self._queue.put(None)
