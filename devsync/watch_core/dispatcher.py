"""Resolve change events to workspaces and fan them out to sync targets.

One dispatcher consumes the queue sequentially. For every event that belongs
to a workspace and passes its ignore filter, one task per target is started
and the loop moves straight on to the next event; it never waits on those
tasks. Consequently two back-to-back events for the same path may have their
syncs running at the same time and finishing in either order. With
``serialize_syncs`` each target runs one invocation at a time instead.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Dict, List, Set

from devsync.events import ChangeEvent
from devsync.logger import ContextLogger
from devsync.syncers.base import Syncer
from devsync.workspace import Workspace, WorkspaceIndex

from .config import LOGGER
from .queue import END_OF_STREAM, EventQueue, SourceError


@dataclass
class DispatchStats:
    received: int = 0
    dispatched: int = 0
    unowned: int = 0
    ignored: int = 0
    source_errors: int = 0
    tasks_started: int = 0
    tasks_succeeded: int = 0
    tasks_failed: int = 0


class Dispatcher:
    def __init__(self, index: WorkspaceIndex, queue: EventQueue, *, serialize_syncs: bool = False):
        self.index = index
        self.queue = queue
        self.serialize_syncs = serialize_syncs
        self.stats = DispatchStats()
        self._tasks: Set["asyncio.Task[None]"] = set()
        self._locks: Dict[int, asyncio.Lock] = {}

    @property
    def outstanding(self) -> int:
        return len(self._tasks)

    async def run(self) -> DispatchStats:
        """Consume events until end-of-stream, then wait for in-flight syncs."""
        while True:
            item = await self.queue.get()
            if item is END_OF_STREAM:
                break
            if isinstance(item, SourceError):
                self.stats.source_errors += 1
                LOGGER.warning("Received error event: %r", item.error)
                continue
            self.dispatch(item)
        LOGGER.info("Event stream closed, waiting for %d sync task(s)", self.outstanding)
        await self.wait_outstanding()
        return self.stats

    def dispatch(self, event: ChangeEvent) -> List["asyncio.Task[None]"]:
        """Start one task per target of the owning workspace; never blocks."""
        self.stats.received += 1
        LOGGER.debug("Received event: %s %s", event.kind.value, event.path)
        workspace = self.index.get_closest(event.path)
        if workspace is None:
            self.stats.unowned += 1
            LOGGER.debug("No workspace owns %s", event.path)
            return []
        if not workspace.should_sync(event.path):
            self.stats.ignored += 1
            LOGGER.debug("Ignoring %s", event.path)
            return []
        self.stats.dispatched += 1
        started = []
        log = ContextLogger(LOGGER, workspace=workspace.root_path, path=event.path)
        for target in workspace.targets:
            task = asyncio.create_task(
                self._run_target(workspace, target, event, log.bind(target=str(target))),
                name=f"sync:{target}:{event.path}",
            )
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)
            started.append(task)
        self.stats.tasks_started += len(started)
        return started

    async def _run_target(
        self, workspace: Workspace, target: Syncer, event: ChangeEvent, log: ContextLogger
    ) -> None:
        try:
            if self.serialize_syncs:
                async with self._lock_for(target):
                    await target.sync(workspace.root_path, event.path, event.kind)
            else:
                await target.sync(workspace.root_path, event.path, event.kind)
        except Exception:
            self.stats.tasks_failed += 1
            log.exception("Error during sync")
            return
        self.stats.tasks_succeeded += 1
        log.debug("Sync finished")

    def _lock_for(self, target: Syncer) -> asyncio.Lock:
        lock = self._locks.get(id(target))
        if lock is None:
            lock = self._locks[id(target)] = asyncio.Lock()
        return lock

    async def wait_outstanding(self) -> None:
        # dispatch() may still be called directly while we wait
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)


__all__ = ["Dispatcher", "DispatchStats"]
