"""Misc utilities shared across watch_core modules."""

from __future__ import annotations

import os
from typing import Optional, Type

from watchdog.observers import Observer
from watchdog.observers.api import BaseObserver

from .config import LOGGER


def create_observer(
    use_polling: bool,
    observer_cls: Type[BaseObserver] = Observer,
    poll_interval: Optional[float] = None,
) -> BaseObserver:
    """Create a watchdog observer based on configuration."""
    if use_polling:
        from watchdog.observers.polling import PollingObserver

        LOGGER.info("Using polling observer for filesystem events")
        if poll_interval:
            return PollingObserver(timeout=poll_interval)
        return PollingObserver()
    return observer_cls()


def decode_path(path) -> str:
    """watchdog reports bytes paths when it was scheduled with a bytes path."""
    return os.fsdecode(path)


__all__ = ["create_observer", "decode_path"]
