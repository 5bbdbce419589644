"""Segment-keyed tree mapping filesystem paths to arbitrary data.

Lookups answer "which inserted path is the closest ancestor of this path",
which is how a change event is attributed to the most specific workspace
that contains it.
"""
from __future__ import annotations

from pathlib import PurePath
from typing import Dict, Generic, Iterator, List, Optional, Tuple, TypeVar, Union

T = TypeVar("T")

PathLike = Union[str, PurePath]

_EMPTY = object()


class _Node(Generic[T]):
    __slots__ = ("data", "children")

    def __init__(self) -> None:
        self.data: object = _EMPTY
        self.children: Dict[str, "_Node[T]"] = {}


def _segments(path: PathLike) -> Tuple[bool, Tuple[str, ...]]:
    """Split ``path`` into (is_absolute, segments below the anchor)."""
    p = path if isinstance(path, PurePath) else PurePath(path)
    if not p.is_absolute():
        return False, p.parts
    return True, p.parts[1:]


class PathTrie(Generic[T]):
    """Owned tree of path segments; the root node stands for the filesystem root.

    Built once and then only read, so lookups and iteration need no locking.
    """

    def __init__(self) -> None:
        self._root: _Node[T] = _Node()
        self._size = 0

    def insert(self, path: PathLike, data: T) -> None:
        """Attach ``data`` to ``path``, replacing any payload already there.

        Raises:
            ValueError: if ``path`` is not absolute.
        """
        absolute, parts = _segments(path)
        if not absolute:
            raise ValueError(f"path must be absolute: {path!s}")
        node = self._root
        for part in parts:
            child = node.children.get(part)
            if child is None:
                child = _Node()
                node.children[part] = child
            node = child
        if node.data is _EMPTY:
            self._size += 1
        node.data = data

    def get_closest(self, path: PathLike) -> Optional[T]:
        """Return the payload of the deepest inserted ancestor of ``path``.

        The walk descends as far as the query's segments exist in the tree and
        remembers the last node carrying a payload, so a path under a
        registered directory resolves to it even when the remaining segments
        were never inserted. Relative paths have no ancestors and yield None.
        """
        absolute, parts = _segments(path)
        if not absolute:
            return None
        node = self._root
        found = node.data
        for part in parts:
            node = node.children.get(part)
            if node is None:
                break
            if node.data is not _EMPTY:
                found = node.data
        return None if found is _EMPTY else found  # type: ignore[return-value]

    def __iter__(self) -> Iterator[T]:
        stack: List[_Node[T]] = [self._root]
        while stack:
            node = stack.pop()
            if node.data is not _EMPTY:
                yield node.data  # type: ignore[misc]
            stack.extend(node.children.values())

    def __len__(self) -> int:
        return self._size

    def __bool__(self) -> bool:
        return self._size > 0


__all__ = ["PathTrie"]
