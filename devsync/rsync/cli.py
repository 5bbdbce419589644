"""Named rsync flags and options as they appear in the configuration file."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List

from devsync.logger import ConfigurationError


class RsyncFlag(Enum):
    Recursive = "-r"
    IncludeLinks = "-l"
    PreservePermissions = "-p"
    PreserveModTimes = "-t"
    Compress = "-z"
    Verbose = "-v"
    DeleteAfter = "--delete-after"

    @classmethod
    def parse(cls, name: object) -> "RsyncFlag":
        if isinstance(name, cls):
            return name
        try:
            return cls[str(name)]
        except KeyError:
            valid = ", ".join(f.name for f in cls)
            raise ConfigurationError(f"unknown rsync flag {name!r} (expected one of: {valid})") from None

    def as_cli_arg(self) -> str:
        return self.value


@dataclass(frozen=True)
class RsyncOption:
    """An rsync option that takes a value, e.g. ``--exclude <pattern>``."""

    name: str
    value: str

    @classmethod
    def exclude(cls, pattern: str) -> "RsyncOption":
        return cls("--exclude", pattern)

    def as_cli_args(self) -> List[str]:
        return [self.name, self.value]


__all__ = ["RsyncFlag", "RsyncOption"]
