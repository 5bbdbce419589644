import asyncio
import logging

import pytest

from devsync.events import ChangeEvent, ChangeKind
from devsync.ignore import IgnoreFilter
from devsync.syncers.base import Syncer
from devsync.watch_core.dispatcher import Dispatcher
from devsync.watch_core.queue import EventQueue
from devsync.workspace import Workspace, WorkspaceIndex

pytestmark = pytest.mark.unit


class FakeSyncer(Syncer):
    def __init__(self, name="fake", fail=False, gate=None, delay=0.0):
        self.label = name
        self.fail = fail
        self.gate = gate
        self.delay = delay
        self.calls = []
        self.running = 0
        self.max_running = 0

    async def sync(self, workspace_path, file_path, kind):
        self.calls.append((workspace_path, file_path, kind))
        self.running += 1
        self.max_running = max(self.max_running, self.running)
        try:
            if self.gate is not None:
                await self.gate.wait()
            if self.delay:
                await asyncio.sleep(self.delay)
            if self.fail:
                raise RuntimeError(f"{self.label} exploded")
        finally:
            self.running -= 1

    def __str__(self):
        return self.label


def _index(*workspaces):
    return WorkspaceIndex(workspaces)


def _ws(root, *targets, ignore=()):
    return Workspace(root_path=root, ignore=IgnoreFilter.for_workspace(root, ignore), targets=targets)


async def _run_events(dispatcher, queue, *events):
    for event in events:
        queue.add(event)
    queue.close()
    return await asyncio.wait_for(dispatcher.run(), timeout=5)


@pytest.mark.asyncio
async def test_event_fans_out_to_every_target_and_failures_stay_local(caplog):
    broken = FakeSyncer("broken", fail=True)
    healthy = FakeSyncer("healthy")
    index = _index(_ws("/proj/", broken, healthy))
    queue = EventQueue()
    dispatcher = Dispatcher(index, queue)

    with caplog.at_level(logging.ERROR):
        stats = await _run_events(dispatcher, queue, ChangeEvent("/proj/a.py", ChangeKind.MODIFY))

    assert broken.calls == [("/proj/", "/proj/a.py", ChangeKind.MODIFY)]
    assert healthy.calls == [("/proj/", "/proj/a.py", ChangeKind.MODIFY)]
    assert stats.tasks_started == 2
    assert stats.tasks_failed == 1
    assert stats.tasks_succeeded == 1
    failure = [r for r in caplog.records if "Error during sync" in r.getMessage()]
    assert failure
    fields = failure[0].extra_fields
    assert fields["workspace"] == "/proj/"
    assert fields["target"] == "broken"
    assert fields["path"] == "/proj/a.py"


@pytest.mark.asyncio
async def test_unowned_and_ignored_events_start_no_tasks():
    target = FakeSyncer()
    index = _index(_ws("/proj/", target, ignore=["ignore-2/*"]))
    queue = EventQueue()
    stats = await _run_events(
        Dispatcher(index, queue),
        queue,
        ChangeEvent("/elsewhere/file", ChangeKind.CREATE),
        ChangeEvent("/proj/ignore-2/file2", ChangeKind.CREATE),
        ChangeEvent("/proj/random-file", ChangeKind.CREATE),
    )
    assert stats.received == 3
    assert stats.unowned == 1
    assert stats.ignored == 1
    assert stats.dispatched == 1
    assert [c[1] for c in target.calls] == ["/proj/random-file"]


@pytest.mark.asyncio
async def test_events_resolve_to_most_specific_workspace():
    outer, inner = FakeSyncer("outer"), FakeSyncer("inner")
    index = _index(_ws("/tmp/dir1/", outer), _ws("/tmp/dir1/subdir1/subsubdir1/", inner))
    queue = EventQueue()
    await _run_events(
        Dispatcher(index, queue),
        queue,
        ChangeEvent("/tmp/dir1/file1", ChangeKind.MODIFY),
        ChangeEvent("/tmp/dir1/subdir1/subsubdir1/deep/file", ChangeKind.MODIFY),
    )
    assert [c[0] for c in outer.calls] == ["/tmp/dir1/"]
    assert [c[0] for c in inner.calls] == ["/tmp/dir1/subdir1/subsubdir1/"]


@pytest.mark.asyncio
async def test_dispatch_does_not_wait_for_running_syncs():
    gate = asyncio.Event()
    slow = FakeSyncer("slow", gate=gate)
    dispatcher = Dispatcher(_index(_ws("/proj/", slow)), EventQueue())

    first = dispatcher.dispatch(ChangeEvent("/proj/a", ChangeKind.MODIFY))
    second = dispatcher.dispatch(ChangeEvent("/proj/a", ChangeKind.MODIFY))
    await asyncio.sleep(0)
    await asyncio.sleep(0)

    assert len(first) == len(second) == 1
    assert dispatcher.outstanding == 2
    # both invocations for the same path run concurrently
    assert slow.running == 2

    gate.set()
    await asyncio.wait_for(dispatcher.wait_outstanding(), timeout=5)
    assert dispatcher.outstanding == 0
    assert dispatcher.stats.tasks_succeeded == 2


@pytest.mark.asyncio
async def test_serialize_syncs_runs_one_invocation_per_target_at_a_time():
    target = FakeSyncer(delay=0.01)
    queue = EventQueue()
    dispatcher = Dispatcher(_index(_ws("/proj/", target)), queue, serialize_syncs=True)
    stats = await _run_events(
        dispatcher, queue, *[ChangeEvent(f"/proj/{i}", ChangeKind.MODIFY) for i in range(4)]
    )
    assert stats.tasks_succeeded == 4
    assert target.max_running == 1


@pytest.mark.asyncio
async def test_without_serialization_invocations_overlap():
    target = FakeSyncer(delay=0.05)
    queue = EventQueue()
    dispatcher = Dispatcher(_index(_ws("/proj/", target)), queue)
    await _run_events(dispatcher, queue, *[ChangeEvent("/proj/x", ChangeKind.MODIFY) for _ in range(3)])
    assert target.max_running == 3


@pytest.mark.asyncio
async def test_close_drains_queued_events_and_waits_for_tasks():
    target = FakeSyncer(delay=0.05)
    queue = EventQueue()
    dispatcher = Dispatcher(_index(_ws("/proj/", target)), queue)
    queue.add(ChangeEvent("/proj/1"))
    queue.add(ChangeEvent("/proj/2"))
    queue.close()
    assert not queue.add(ChangeEvent("/proj/late"))

    stats = await asyncio.wait_for(dispatcher.run(), timeout=5)
    assert stats.received == 2
    # run() only returns after in-flight syncs have finished
    assert stats.tasks_succeeded == 2
    assert dispatcher.outstanding == 0
    assert [c[1] for c in target.calls] == ["/proj/1", "/proj/2"]


@pytest.mark.asyncio
async def test_source_errors_are_logged_and_skipped(caplog):
    target = FakeSyncer()
    queue = EventQueue()
    dispatcher = Dispatcher(_index(_ws("/proj/", target)), queue)
    queue.add_error(OSError("inotify watch limit reached"))
    queue.add(ChangeEvent("/proj/after-error", ChangeKind.CREATE))
    queue.close()

    with caplog.at_level(logging.WARNING):
        stats = await asyncio.wait_for(dispatcher.run(), timeout=5)

    assert stats.source_errors == 1
    assert stats.received == 1
    assert len(target.calls) == 1
    assert any("Received error event" in r.getMessage() for r in caplog.records)


@pytest.mark.asyncio
async def test_events_from_another_thread_keep_fifo_order():
    target = FakeSyncer()
    queue = EventQueue()
    dispatcher = Dispatcher(_index(_ws("/proj/", target)), queue)

    def produce():
        for i in range(50):
            queue.add(ChangeEvent(f"/proj/{i}", ChangeKind.MODIFY))
        queue.close()

    loop = asyncio.get_running_loop()
    await loop.run_in_executor(None, produce)
    stats = await asyncio.wait_for(dispatcher.run(), timeout=5)
    assert stats.received == 50
    assert [c[1] for c in target.calls] == [f"/proj/{i}" for i in range(50)]


@pytest.mark.asyncio
async def test_workspace_without_targets_dispatches_nothing():
    queue = EventQueue()
    stats = await _run_events(Dispatcher(_index(_ws("/proj/")), queue), queue, ChangeEvent("/proj/x"))
    assert stats.dispatched == 1
    assert stats.tasks_started == 0
