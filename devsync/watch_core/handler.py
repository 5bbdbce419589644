"""Watchdog event handler responsible for enqueueing file changes.

watchdog does not route observer failures (an emitter thread dying on an
inotify watch limit, say) to handlers, so the only errors this handler can
report are failures to translate an event it was given. Producers with
their own error channel call ``EventQueue.add_error`` directly.
"""

from __future__ import annotations

from watchdog.events import (
    EVENT_TYPE_CREATED,
    EVENT_TYPE_DELETED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
    FileSystemEvent,
    FileSystemEventHandler,
)

from devsync.events import ChangeEvent, ChangeKind

from .config import LOGGER
from .utils import decode_path

_KINDS = {
    EVENT_TYPE_CREATED: ChangeKind.CREATE,
    EVENT_TYPE_MODIFIED: ChangeKind.MODIFY,
    EVENT_TYPE_DELETED: ChangeKind.REMOVE,
    EVENT_TYPE_MOVED: ChangeKind.RENAME,
}


def to_change_event(event: FileSystemEvent) -> ChangeEvent:
    # moves are attributed to their source path
    kind = _KINDS.get(event.event_type, ChangeKind.OTHER)
    return ChangeEvent(path=decode_path(event.src_path), kind=kind)


class SyncEventHandler(FileSystemEventHandler):
    """Runs on the observer thread; only translates and enqueues."""

    def __init__(self, queue):
        super().__init__()
        self.queue = queue

    def on_any_event(self, event: FileSystemEvent) -> None:
        try:
            change = to_change_event(event)
        except Exception as exc:
            LOGGER.debug("Could not translate %r", event, exc_info=True)
            self.queue.add_error(exc)
            return
        self.queue.add(change)


__all__ = ["SyncEventHandler", "to_change_event"]
