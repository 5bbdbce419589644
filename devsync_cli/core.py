"""Shared helpers for CLI commands."""
from __future__ import annotations

import json
import os
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from devsync.config import canonicalize_dir, default_config_path
from devsync.logger import ConfigurationError


def resolve_config_path(args) -> Path:
    explicit = getattr(args, "config", None)
    if explicit:
        return Path(os.path.expanduser(explicit))
    return default_config_path()


def read_raw_config(path: Path) -> Dict[str, Any]:
    """Load the config file as plain data for editing, without building anything."""
    if not path.exists():
        raise ConfigurationError(f"config file {path} does not exist; run `dev-sync init` first")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"invalid YAML in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigurationError("configuration root must be a mapping")
    data.setdefault("global_config", {})
    if not isinstance(data.get("workspaces"), list):
        data["workspaces"] = []
    return data


def write_raw_config(path: Path, data: Dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    tmp.write_text(yaml.safe_dump(data, default_flow_style=False, sort_keys=False), encoding="utf-8")
    os.replace(tmp, path)


def _same_dir(configured: Any, wanted: str) -> bool:
    if not isinstance(configured, str):
        return False
    resolved = os.path.realpath(os.path.expanduser(configured))
    return resolved.rstrip(os.sep) == wanted.rstrip(os.sep)


def find_workspace(data: Dict[str, Any], src_path: str) -> Optional[Dict[str, Any]]:
    wanted = os.path.realpath(os.path.expanduser(src_path))
    for ws in data["workspaces"]:
        if isinstance(ws, dict) and _same_dir(ws.get("src_dir"), wanted):
            return ws
    return None


def require_src_path(args, must_exist: bool = True) -> str:
    src_path = getattr(args, "src_path", None)
    if not src_path:
        raise ConfigurationError("--src-path is required for this command")
    if must_exist:
        return canonicalize_dir(src_path)
    return os.path.realpath(os.path.expanduser(src_path)).rstrip(os.sep) + os.sep


def emit(payload: Dict[str, Any]) -> None:
    json.dump(payload, sys.stdout, default=str)
    sys.stdout.write("\n")


def workspace_summary(data: Dict[str, Any]) -> List[Dict[str, Any]]:
    out = []
    for ws in data["workspaces"]:
        if not isinstance(ws, dict):
            continue
        out.append({
            "src_dir": ws.get("src_dir"),
            "syncers": [s.get("type") for s in ws.get("syncers") or [] if isinstance(s, dict)],
            "ignore": list(ws.get("ignore") or []),
        })
    return out
