"""Filesystem change events as seen by the dispatcher."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ChangeKind(str, Enum):
    CREATE = "create"
    MODIFY = "modify"
    REMOVE = "remove"
    RENAME = "rename"
    OTHER = "other"


@dataclass(frozen=True)
class ChangeEvent:
    """A single change: absolute ``path`` and what happened to it."""

    path: str
    kind: ChangeKind = ChangeKind.OTHER


__all__ = ["ChangeKind", "ChangeEvent"]
