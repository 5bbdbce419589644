"""Configuration file loading and workspace construction.

The file is YAML with a ``global_config`` block and an ordered list of
``workspaces``. Loading validates everything up front and raises
``ConfigurationError`` on the first problem; nothing is partially built.
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

import yaml

from devsync.ignore import IgnoreFilter
from devsync.logger import ConfigurationError, get_logger
from devsync.syncers.base import Syncer
from devsync.syncers.rsyncer import RsyncGlobalProperties, RsyncProperties
from devsync.workspace import Workspace, WorkspaceIndex

logger = get_logger(__name__)

DEFAULT_CONFIG_PATH = "~/.config/dev-sync-config.yaml"
CONFIG_ENV_VAR = "DEVSYNC_CONFIG"


def default_config_path() -> Path:
    return Path(os.path.expanduser(os.environ.get(CONFIG_ENV_VAR) or DEFAULT_CONFIG_PATH))


def canonicalize_dir(local_dir: str) -> str:
    """Resolve ``local_dir`` to an existing absolute directory ending in a separator."""
    resolved = os.path.realpath(os.path.expanduser(local_dir))
    if not os.path.isdir(resolved):
        raise ConfigurationError(f"src_dir {local_dir!r}: path must exist and be a directory")
    if not resolved.endswith(os.sep):
        resolved += os.sep
    return resolved


def _ignore_list(data: Mapping[str, Any], where: str) -> Optional[List[str]]:
    value = data.get("ignore")
    if value is None:
        return None
    if not isinstance(value, list) or not all(isinstance(v, str) and v for v in value):
        raise ConfigurationError(f"{where}.ignore must be a list of non-empty strings")
    return list(value)


@dataclass
class SyncerConfig:
    """One entry of a workspace's ``syncers`` list, tagged by ``type``."""

    type: str
    properties: Any

    def as_syncer(self, global_config: "GlobalConfig") -> Syncer:
        _, build = SYNCER_TYPES[self.type]
        return build(self.properties, global_config)


# type tag -> (parse workspace-level fields, build syncer from them and the global block)
SYNCER_TYPES: Dict[str, tuple] = {
    "rsync": (
        RsyncProperties.from_config,
        lambda props, g: props.as_syncer(g.rsync),
    ),
}


def parse_syncer(raw: Any, where: str) -> SyncerConfig:
    if not isinstance(raw, Mapping):
        raise ConfigurationError(f"{where} must be a mapping")
    data = dict(raw)
    kind = data.pop("type", None)
    if kind not in SYNCER_TYPES:
        valid = ", ".join(SYNCER_TYPES)
        raise ConfigurationError(f"{where}.type must be one of: {valid} (got {kind!r})")
    parse: Callable[..., Any] = SYNCER_TYPES[kind][0]
    return SyncerConfig(type=kind, properties=parse(data, where))


@dataclass
class GlobalConfig:
    ignore: Optional[List[str]] = None
    rsync: Optional[RsyncGlobalProperties] = None
    serialize_syncs: bool = False

    @classmethod
    def from_config(cls, raw: Any, where: str = "global_config") -> "GlobalConfig":
        if raw is None:
            return cls()
        if not isinstance(raw, Mapping):
            raise ConfigurationError(f"{where} must be a mapping")
        unknown = sorted(set(raw) - {"ignore", "rsync", "serialize_syncs"})
        if unknown:
            raise ConfigurationError(f"unknown field(s) in {where}: {', '.join(unknown)}")
        rsync = raw.get("rsync")
        serialize = raw.get("serialize_syncs", False)
        if not isinstance(serialize, bool):
            raise ConfigurationError(f"{where}.serialize_syncs must be true or false")
        return cls(
            ignore=_ignore_list(raw, where),
            rsync=RsyncGlobalProperties.from_config(rsync, f"{where}.rsync") if rsync is not None else None,
            serialize_syncs=serialize,
        )


@dataclass
class WorkspaceConfig:
    src_dir: str
    syncers: List[SyncerConfig] = field(default_factory=list)
    ignore: Optional[List[str]] = None

    @classmethod
    def from_config(cls, raw: Any, where: str) -> "WorkspaceConfig":
        if not isinstance(raw, Mapping):
            raise ConfigurationError(f"{where} must be a mapping")
        unknown = sorted(set(raw) - {"src_dir", "syncers", "ignore"})
        if unknown:
            raise ConfigurationError(f"unknown field(s) in {where}: {', '.join(unknown)}")
        src_dir = raw.get("src_dir")
        if not isinstance(src_dir, str) or not src_dir:
            raise ConfigurationError(f"{where}.src_dir is required")
        syncers = raw.get("syncers") or []
        if not isinstance(syncers, list):
            raise ConfigurationError(f"{where}.syncers must be a list")
        return cls(
            src_dir=canonicalize_dir(src_dir),
            syncers=[parse_syncer(s, f"{where}.syncers[{i}]") for i, s in enumerate(syncers)],
            ignore=_ignore_list(raw, where),
        )


@dataclass
class Config:
    global_config: GlobalConfig = field(default_factory=GlobalConfig)
    workspaces: List[WorkspaceConfig] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> "Config":
        if data is None:
            data = {}
        if not isinstance(data, Mapping):
            raise ConfigurationError("configuration root must be a mapping")
        unknown = sorted(set(data) - {"global_config", "workspaces"})
        if unknown:
            raise ConfigurationError(f"unknown top-level field(s): {', '.join(unknown)}")
        workspaces = data.get("workspaces") or []
        if not isinstance(workspaces, list):
            raise ConfigurationError("workspaces must be a list")
        return cls(
            global_config=GlobalConfig.from_config(data.get("global_config")),
            workspaces=[
                WorkspaceConfig.from_config(ws, f"workspaces[{i}]") for i, ws in enumerate(workspaces)
            ],
        )

    @classmethod
    def parse(cls, path: Union[str, Path]) -> "Config":
        path = Path(os.path.expanduser(str(path)))
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise ConfigurationError(f"cannot read config file {path}: {exc}") from exc
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"invalid YAML in {path}: {exc}") from exc
        config = cls.from_dict(data)
        logger.debug("Loaded %d workspace(s) from %s", len(config.workspaces), path)
        return config

    def build_workspaces(self) -> List[Workspace]:
        """Build one Workspace per configured entry, merging global settings in.

        Targets built before a failure are closed again so no session files
        are left behind by a half-built configuration.
        """
        built: List[Workspace] = []
        targets: List[Syncer] = []
        try:
            for ws_config in self.workspaces:
                root = ws_config.src_dir if ws_config.src_dir.endswith(os.sep) else ws_config.src_dir + os.sep
                ws_targets = []
                for syncer_config in ws_config.syncers:
                    target = syncer_config.as_syncer(self.global_config)
                    targets.append(target)
                    ws_targets.append(target)
                ignore = IgnoreFilter.for_workspace(root, self.global_config.ignore, ws_config.ignore)
                built.append(Workspace(root_path=root, ignore=ignore, targets=tuple(ws_targets)))
        except Exception:
            for target in targets:
                target.close()
            raise
        return built

    def build_index(self) -> WorkspaceIndex:
        return WorkspaceIndex(self.build_workspaces())


def load_config(path: Optional[Union[str, Path]] = None) -> Config:
    return Config.parse(path if path is not None else default_config_path())


__all__ = [
    "Config",
    "GlobalConfig",
    "SyncerConfig",
    "WorkspaceConfig",
    "SYNCER_TYPES",
    "canonicalize_dir",
    "default_config_path",
    "load_config",
]
