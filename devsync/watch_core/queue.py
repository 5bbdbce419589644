"""Unbounded event queue between the observer thread and the dispatcher."""

from __future__ import annotations

import asyncio
import threading
from typing import Optional, Union

from devsync.events import ChangeEvent

from .config import LOGGER


class SourceError:
    """An error reported by the notification source in place of an event.

    The dispatcher logs and counts it, then keeps consuming.
    """

    __slots__ = ("error",)

    def __init__(self, error: BaseException):
        self.error = error

    def __repr__(self) -> str:
        return f"SourceError({self.error!r})"


class _EndOfStream:
    __slots__ = ()

    def __repr__(self) -> str:
        return "END_OF_STREAM"


END_OF_STREAM = _EndOfStream()

QueueItem = Union[ChangeEvent, SourceError, _EndOfStream]


class EventQueue:
    """FIFO of change events, safe to feed from any thread.

    Items are handed to the loop with ``call_soon_threadsafe`` so arrival
    order is kept. ``close()`` appends an end-of-stream marker behind
    everything already queued; anything added afterwards is discarded.
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop or asyncio.get_running_loop()
        self._queue: "asyncio.Queue[QueueItem]" = asyncio.Queue()
        self._lock = threading.Lock()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def _put(self, item: QueueItem) -> bool:
        try:
            self._loop.call_soon_threadsafe(self._queue.put_nowait, item)
        except RuntimeError as exc:
            # loop already closed; nobody is left to consume the item
            LOGGER.warning("Error sending event %r: %s", item, exc)
            return False
        return True

    def add(self, event: ChangeEvent) -> bool:
        with self._lock:
            if self._closed:
                LOGGER.debug("Queue closed, discarding %s", event)
                return False
            return self._put(event)

    def add_error(self, error: BaseException) -> bool:
        with self._lock:
            if self._closed:
                return False
            return self._put(SourceError(error))

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._put(END_OF_STREAM)

    async def get(self) -> QueueItem:
        return await self._queue.get()

    def qsize(self) -> int:
        return self._queue.qsize()


__all__ = ["EventQueue", "SourceError", "END_OF_STREAM"]
