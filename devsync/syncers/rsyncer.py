"""rsync target: configuration models, global/workspace merge and the syncer itself.

Merge policy between ``global_config.rsync`` and a workspace's rsync entry:

* scalar fields: the workspace value wins, else the global default, else unset
* list fields (flags, excludes, ssh options): workspace entries first, then
  global entries; both contribute
* ``ControlPath: GENERATE`` is replaced by a fresh session path once, when the
  target is built
"""
from __future__ import annotations

import os
import secrets
import string
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence

from devsync.events import ChangeKind
from devsync.logger import ConfigurationError
from devsync.rsync.cli import RsyncFlag, RsyncOption
from devsync.rsync.command import build_command, run_rsync
from devsync.rsync.shell import SSHOption, SSHShell

from .base import Syncer

GENERATE = "GENERATE"
CONTROL_PATH_PREFIX = "dev-sync-"
SESSION_ID_LENGTH = 12

_ALPHANUMERIC = string.ascii_letters + string.digits


def generate_session_id(length: int = SESSION_ID_LENGTH) -> str:
    return "".join(secrets.choice(_ALPHANUMERIC) for _ in range(length))


def generate_control_path(session_id: str) -> str:
    return os.path.join(os.path.expanduser("~"), ".ssh", CONTROL_PATH_PREFIX + session_id)


# ---------------------------------------------------------------------------
# Field parsing helpers
# ---------------------------------------------------------------------------
def _check_keys(data: Mapping[str, Any], allowed: Sequence[str], where: str) -> None:
    unknown = sorted(set(data) - set(allowed))
    if unknown:
        raise ConfigurationError(f"unknown field(s) in {where}: {', '.join(unknown)}")


def _mapping(value: Any, where: str) -> Dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ConfigurationError(f"{where} must be a mapping, got {type(value).__name__}")
    return dict(value)


def _opt_str(data: Mapping[str, Any], key: str, where: str) -> Optional[str]:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str) or not value:
        raise ConfigurationError(f"{where}.{key} must be a non-empty string")
    return value


def _opt_timeout(data: Mapping[str, Any], key: str, where: str) -> Optional[float]:
    value = data.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
        raise ConfigurationError(f"{where}.{key} must be a positive number")
    return float(value)


def _opt_list(data: Mapping[str, Any], key: str, where: str) -> Optional[List[Any]]:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, list):
        raise ConfigurationError(f"{where}.{key} must be a list")
    return list(value)


def _opt_str_list(data: Mapping[str, Any], key: str, where: str) -> Optional[List[str]]:
    values = _opt_list(data, key, where)
    if values is not None and not all(isinstance(v, str) for v in values):
        raise ConfigurationError(f"{where}.{key} must be a list of strings")
    return values


def _opt_flags(data: Mapping[str, Any], key: str, where: str) -> Optional[List[RsyncFlag]]:
    values = _opt_list(data, key, where)
    return None if values is None else [RsyncFlag.parse(v) for v in values]


def _opt_ssh_options(data: Mapping[str, Any], key: str, where: str) -> Optional[List[SSHOption]]:
    values = _opt_list(data, key, where)
    return None if values is None else [SSHOption.from_config(v) for v in values]


# ---------------------------------------------------------------------------
# Property models
# ---------------------------------------------------------------------------
@dataclass
class SSHAdditionalProperties:
    """Workspace-level ssh options, added in front of the global ones."""

    additional_options: Optional[List[SSHOption]] = None

    @classmethod
    def from_config(cls, raw: Any, where: str = "ssh") -> "SSHAdditionalProperties":
        data = _mapping(raw, where)
        _check_keys(data, ("additional_options",), where)
        return cls(additional_options=_opt_ssh_options(data, "additional_options", where))


@dataclass
class SSHProperties:
    options: Optional[List[SSHOption]] = None

    @classmethod
    def from_config(cls, raw: Any, where: str = "ssh") -> "SSHProperties":
        data = _mapping(raw, where)
        _check_keys(data, ("options",), where)
        return cls(options=_opt_ssh_options(data, "options", where))

    def merge(self, additional: Optional[SSHAdditionalProperties]) -> "SSHProperties":
        if additional is None or additional.additional_options is None:
            return SSHProperties(list(self.options) if self.options is not None else None)
        return SSHProperties(list(additional.additional_options) + list(self.options or []))

    def as_shell(self) -> SSHShell:
        options: List[SSHOption] = []
        owned: List[str] = []
        for opt in self.options or []:
            if opt.name == "ControlPath" and opt.value == GENERATE:
                path = generate_control_path(generate_session_id())
                owned.append(path)
                opt = SSHOption("ControlPath", path)
            options.append(opt)
        return SSHShell(options, owned_paths=owned)


@dataclass
class RsyncGlobalProperties:
    default_dst_host: Optional[str] = None
    default_dst_user: Optional[str] = None
    excludes: Optional[List[str]] = None
    flags: Optional[List[RsyncFlag]] = None
    timeout_secs: Optional[float] = None
    ssh: Optional[SSHProperties] = None

    FIELDS = ("default_dst_host", "default_dst_user", "excludes", "flags", "timeout_secs", "ssh")

    @classmethod
    def from_config(cls, raw: Any, where: str = "global_config.rsync") -> "RsyncGlobalProperties":
        data = _mapping(raw, where)
        _check_keys(data, cls.FIELDS, where)
        ssh = data.get("ssh")
        return cls(
            default_dst_host=_opt_str(data, "default_dst_host", where),
            default_dst_user=_opt_str(data, "default_dst_user", where),
            excludes=_opt_str_list(data, "excludes", where),
            flags=_opt_flags(data, "flags", where),
            timeout_secs=_opt_timeout(data, "timeout_secs", where),
            ssh=SSHProperties.from_config(ssh, f"{where}.ssh") if ssh is not None else None,
        )


@dataclass
class RsyncProperties:
    dst_dir: str
    dst_host: Optional[str] = None
    dst_user: Optional[str] = None
    timeout_secs: Optional[float] = None
    additional_flags: Optional[List[RsyncFlag]] = None
    additional_excludes: Optional[List[str]] = None
    ssh: Optional[SSHAdditionalProperties] = None

    FIELDS = (
        "dst_dir",
        "dst_host",
        "dst_user",
        "timeout_secs",
        "additional_flags",
        "additional_excludes",
        "ssh",
    )

    @classmethod
    def from_config(cls, raw: Any, where: str = "rsync") -> "RsyncProperties":
        data = _mapping(raw, where)
        _check_keys(data, cls.FIELDS, where)
        dst_dir = _opt_str(data, "dst_dir", where)
        if dst_dir is None:
            raise ConfigurationError(f"{where}.dst_dir is required")
        ssh = data.get("ssh")
        return cls(
            dst_dir=dst_dir,
            dst_host=_opt_str(data, "dst_host", where),
            dst_user=_opt_str(data, "dst_user", where),
            timeout_secs=_opt_timeout(data, "timeout_secs", where),
            additional_flags=_opt_flags(data, "additional_flags", where),
            additional_excludes=_opt_str_list(data, "additional_excludes", where),
            ssh=SSHAdditionalProperties.from_config(ssh, f"{where}.ssh") if ssh is not None else None,
        )

    def as_syncer(self, global_props: Optional[RsyncGlobalProperties] = None) -> "Rsyncer":
        g = global_props or RsyncGlobalProperties()
        excludes = list(self.additional_excludes or []) + list(g.excludes or [])
        flags = list(self.additional_flags or []) + list(g.flags or [])
        if g.ssh is not None:
            shell: Optional[SSHShell] = g.ssh.merge(self.ssh).as_shell()
        elif self.ssh is not None:
            shell = SSHProperties().merge(self.ssh).as_shell()
        else:
            shell = None
        return Rsyncer(
            dst_dir=self.dst_dir,
            dst_host=self.dst_host or g.default_dst_host,
            dst_user=self.dst_user or g.default_dst_user,
            flags=flags,
            options=[RsyncOption.exclude(e) for e in excludes],
            shell=shell,
            timeout=self.timeout_secs if self.timeout_secs is not None else g.timeout_secs,
        )


# ---------------------------------------------------------------------------
# Syncer
# ---------------------------------------------------------------------------
@dataclass(eq=False)
class Rsyncer(Syncer):
    """Mirrors the whole workspace root to ``[dst_user@][dst_host:]dst_dir``."""

    dst_dir: str
    dst_host: Optional[str] = None
    dst_user: Optional[str] = None
    flags: List[RsyncFlag] = field(default_factory=list)
    options: List[RsyncOption] = field(default_factory=list)
    shell: Optional[SSHShell] = None
    timeout: Optional[float] = None

    name = "rsync"

    def command(self, workspace_path: str) -> List[str]:
        return build_command(
            workspace_path,
            self.dst_dir,
            dst_host=self.dst_host,
            dst_user=self.dst_user,
            shell=self.shell,
            flags=self.flags,
            options=self.options,
        )

    async def sync(self, workspace_path: str, file_path: str, kind: ChangeKind) -> None:
        await run_rsync(self.command(workspace_path), timeout=self.timeout)

    def close(self) -> None:
        if self.shell is not None:
            self.shell.close()

    def __str__(self) -> str:
        host = "@".join(p for p in (self.dst_user, self.dst_host) if p)
        return f"rsync:{host}:{self.dst_dir}" if host else f"rsync:{self.dst_dir}"


__all__ = [
    "GENERATE",
    "RsyncGlobalProperties",
    "RsyncProperties",
    "Rsyncer",
    "SSHAdditionalProperties",
    "SSHProperties",
    "generate_control_path",
    "generate_session_id",
]
