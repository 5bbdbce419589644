"""Workspace values and the path index used to attribute changes to them."""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import PurePath
from typing import Iterable, Iterator, List, Optional, Tuple, Union

from devsync.ignore import IgnoreFilter
from devsync.logger import get_logger
from devsync.path_trie import PathTrie
from devsync.syncers.base import Syncer

logger = get_logger(__name__)


@dataclass(frozen=True)
class Workspace:
    """A watched source tree, its ignore rules and the targets it syncs to.

    ``root_path`` is canonical, absolute and ends with a separator so rsync
    copies the directory's contents rather than the directory itself.
    """

    root_path: str
    ignore: IgnoreFilter
    targets: Tuple[Syncer, ...] = ()

    def __post_init__(self) -> None:
        if not os.path.isabs(self.root_path) or not self.root_path.endswith(os.sep):
            raise ValueError(f"workspace root must be absolute and end with {os.sep!r}: {self.root_path}")
        object.__setattr__(self, "targets", tuple(self.targets))

    def should_sync(self, path: Union[str, PurePath]) -> bool:
        return self.ignore.should_sync(path)


class WorkspaceIndex:
    """Read-only lookup from any path to the most specific workspace containing it."""

    def __init__(self, workspaces: Iterable[Workspace] = ()):
        self._trie: PathTrie[Workspace] = PathTrie()
        for ws in workspaces:
            self._trie.insert(ws.root_path, ws)

    def get_closest(self, path: Union[str, PurePath]) -> Optional[Workspace]:
        return self._trie.get_closest(path)

    def watch_roots(self) -> List[str]:
        """Roots not already covered by an outer workspace.

        A recursive watch on an outer root delivers changes under nested
        workspaces too, and a second watch on the nested root would deliver
        each of those changes twice.
        """
        roots = []
        for ws in self:
            parent = os.path.dirname(ws.root_path.rstrip(os.sep))
            if parent and self._trie.get_closest(parent) is not None:
                continue
            roots.append(ws.root_path)
        return sorted(roots)

    def __iter__(self) -> Iterator[Workspace]:
        return iter(self._trie)

    def __len__(self) -> int:
        return len(self._trie)

    def close(self) -> None:
        """Close every distinct target once; targets may be shared between workspaces."""
        seen = set()
        for ws in self:
            for target in ws.targets:
                if id(target) in seen:
                    continue
                seen.add(id(target))
                try:
                    target.close()
                except Exception as exc:
                    logger.error("Error closing target %s: %s", target, exc, exc_info=True)


__all__ = ["Workspace", "WorkspaceIndex"]
