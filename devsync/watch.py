#!/usr/bin/env python3
"""Watch every configured workspace and sync it on change.

Ctrl-C (or SIGTERM) stops the observer and closes the event queue. Events
already queued are still dispatched, and the process waits for every sync
task that is running; rsync timeouts bound how long that takes. Generated SSH
session files are removed on the way out, whatever the exit path.
"""
from __future__ import annotations

import asyncio
import signal
from pathlib import Path
from typing import Optional, Union

from watchdog.observers import Observer
from watchdog.observers.api import BaseObserver

from devsync.config import default_config_path, load_config
from devsync.watch_core.config import LOGGER, POLL_INTERVAL_SECS, USE_POLLING
from devsync.watch_core.dispatcher import Dispatcher, DispatchStats
from devsync.watch_core.handler import SyncEventHandler
from devsync.watch_core.queue import EventQueue
from devsync.watch_core.utils import create_observer
from devsync.workspace import WorkspaceIndex

logger = LOGGER

_SHUTDOWN_SIGNALS = (signal.SIGINT, signal.SIGTERM)


def _install_signal_handlers(loop: asyncio.AbstractEventLoop, callback) -> list:
    installed = []
    for sig in _SHUTDOWN_SIGNALS:
        try:
            loop.add_signal_handler(sig, callback)
        except (NotImplementedError, RuntimeError, ValueError) as exc:
            # not on the main thread, or no loop signal support (Windows)
            logger.debug("Could not register handler for %s: %s", sig, exc)
            continue
        installed.append(sig)
    return installed


async def run(
    index: WorkspaceIndex,
    *,
    serialize_syncs: bool = False,
    observer: Optional[BaseObserver] = None,
    queue: Optional[EventQueue] = None,
) -> DispatchStats:
    """Observe every workspace in ``index`` and dispatch until shut down."""
    loop = asyncio.get_running_loop()
    queue = queue or EventQueue(loop)
    obs = observer or create_observer(USE_POLLING, observer_cls=Observer, poll_interval=POLL_INTERVAL_SECS)
    handler = SyncEventHandler(queue)

    for workspace in index:
        logger.info("Monitoring workspace: %s", workspace.root_path)
    for root in index.watch_roots():
        obs.schedule(handler, root, recursive=True)

    def shutdown() -> None:
        if queue.closed:
            logger.info("Already shutting down, waiting for running syncs")
            return
        logger.info("Shutting down, draining queued events")
        obs.stop()
        queue.close()

    installed = _install_signal_handlers(loop, shutdown)
    obs.start()
    try:
        stats = await Dispatcher(index, queue, serialize_syncs=serialize_syncs).run()
    finally:
        for sig in installed:
            loop.remove_signal_handler(sig)
        obs.stop()
        await loop.run_in_executor(None, obs.join)
    logger.info(
        "Exiting... events=%d dispatched=%d tasks=%d failed=%d",
        stats.received,
        stats.dispatched,
        stats.tasks_started,
        stats.tasks_failed,
    )
    return stats


def main(config_path: Optional[Union[str, Path]] = None) -> DispatchStats:
    path = Path(config_path) if config_path else default_config_path()
    logger.info("Using config at location: %s", path)
    config = load_config(path)
    index = config.build_index()
    try:
        if not len(index):
            logger.warning("No workspaces configured in %s", path)
        return asyncio.run(run(index, serialize_syncs=config.global_config.serialize_syncs))
    finally:
        index.close()


if __name__ == "__main__":
    main()
