"""SSH remote shell used by rsync's ``-e`` option."""
from __future__ import annotations

import os
import shlex
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Tuple

from devsync.logger import ConfigurationError, get_logger

logger = get_logger(__name__)

# option name -> accepted value type
_OPTION_TYPES: Dict[str, type] = {
    "PasswordAuthentication": bool,
    "ServerAliveInterval": int,
    "ServerAliveCountMax": int,
    "ConnectTimeout": int,
    "ControlMaster": str,
    "ControlPersist": str,
    "ControlPath": str,
    "IdentityFile": str,
}


@dataclass(frozen=True)
class SSHOption:
    name: str
    value: Any

    @classmethod
    def from_config(cls, entry: object) -> "SSHOption":
        """Parse a single-key mapping such as ``{"ConnectTimeout": 20}``."""
        if isinstance(entry, cls):
            return entry
        if not isinstance(entry, Mapping) or len(entry) != 1:
            raise ConfigurationError(f"ssh option must be a single-key mapping, got {entry!r}")
        (name, value), = entry.items()
        expected = _OPTION_TYPES.get(name)
        if expected is None:
            valid = ", ".join(_OPTION_TYPES)
            raise ConfigurationError(f"unknown ssh option {name!r} (expected one of: {valid})")
        # bool is a subclass of int; keep the two apart
        if not isinstance(value, expected) or (expected is int and isinstance(value, bool)):
            raise ConfigurationError(
                f"ssh option {name} expects {expected.__name__}, got {value!r}"
            )
        return cls(name, value)

    def as_cli_args(self) -> List[str]:
        if self.name == "IdentityFile":
            return ["-i", str(self.value)]
        value = self.value
        if isinstance(value, bool):
            value = "yes" if value else "no"
        return ["-o", f"{self.name}={value}"]


class SSHShell:
    """Remote shell command plus the session files it is responsible for.

    ``owned_paths`` lists ControlPath sockets generated for this shell; they
    are removed by ``close()`` (or on leaving a ``with`` block), never by
    garbage collection.
    """

    def __init__(self, options: Iterable[SSHOption], owned_paths: Iterable[str] = ()):
        self.options: Tuple[SSHOption, ...] = tuple(options)
        self.owned_paths: Tuple[str, ...] = tuple(owned_paths)
        self._closed = False

    def as_arg(self) -> str:
        args = ["ssh"]
        for opt in self.options:
            args.extend(opt.as_cli_args())
        return " ".join(shlex.quote(a) for a in args)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        for path in self.owned_paths:
            try:
                os.remove(path)
            except FileNotFoundError:
                pass
            except OSError as exc:
                logger.error("Error closing ssh session control path %s: %s", path, exc)

    def __enter__(self) -> "SSHShell":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"SSHShell({self.as_arg()!r})"


__all__ = ["SSHOption", "SSHShell"]
