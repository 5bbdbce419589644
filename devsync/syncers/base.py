"""Capability shared by every synchronization target."""
from __future__ import annotations

import abc

from devsync.events import ChangeKind


class Syncer(abc.ABC):
    """Something that can mirror a workspace after one of its paths changed.

    A single instance is shared by every task spawned for its workspace, so
    ``sync`` may run concurrently with itself and must not keep per-call
    state on ``self``. Failures are reported by raising; the dispatcher logs
    them and never retries.
    """

    name = "syncer"

    @abc.abstractmethod
    async def sync(self, workspace_path: str, file_path: str, kind: ChangeKind) -> None:
        ...

    def close(self) -> None:
        """Release resources held for the lifetime of the target."""
