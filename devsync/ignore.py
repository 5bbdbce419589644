"""Per-workspace ignore rules compiled from glob patterns."""
from __future__ import annotations

import fnmatch
import glob
import os
import re
from pathlib import PurePath
from typing import Iterable, Optional, Pattern, Tuple, Union

from devsync.logger import ConfigurationError


class IgnoreFilter:
    """Immutable matcher deciding whether a changed path should be synced.

    Relative patterns are anchored at the workspace root; absolute patterns
    are used as-is. ``*`` also matches path separators, so ``*/build/*``
    covers a build directory at any depth below the root.
    """

    __slots__ = ("_patterns", "_regex")

    def __init__(self, patterns: Iterable[str] = ()):
        self._patterns: Tuple[str, ...] = tuple(patterns)
        self._regex: Optional[Pattern[str]] = None
        if self._patterns:
            joined = "|".join(f"(?:{fnmatch.translate(p)})" for p in self._patterns)
            try:
                self._regex = re.compile(joined)
            except re.error as exc:
                raise ConfigurationError(f"invalid ignore pattern in {self._patterns!r}: {exc}") from exc

    @classmethod
    def for_workspace(cls, root: str, *pattern_groups: Optional[Iterable[str]]) -> "IgnoreFilter":
        """Resolve every pattern of every group against ``root`` and compile them together."""
        resolved = []
        for group in pattern_groups:
            for pattern in group or ():
                if not isinstance(pattern, str) or not pattern:
                    raise ConfigurationError(f"ignore patterns must be non-empty strings, got {pattern!r}")
                if os.path.isabs(pattern):
                    resolved.append(pattern)
                else:
                    resolved.append(os.path.join(glob.escape(root), pattern))
        return cls(resolved)

    @property
    def patterns(self) -> Tuple[str, ...]:
        return self._patterns

    def should_sync(self, path: Union[str, PurePath]) -> bool:
        if self._regex is None:
            return True
        return self._regex.match(str(path)) is None

    def __repr__(self) -> str:
        return f"IgnoreFilter({list(self._patterns)!r})"


__all__ = ["IgnoreFilter"]
