"""Workspace commands: add/remove/list workspaces and manage their syncers."""
from __future__ import annotations

import argparse

from devsync.logger import ConfigurationError
from devsync_cli.core import (
    emit,
    find_workspace,
    read_raw_config,
    require_src_path,
    resolve_config_path,
    workspace_summary,
    write_raw_config,
)


def _add_workspace(data, src_path: str) -> dict:
    if find_workspace(data, src_path) is not None:
        raise ConfigurationError(f"workspace {src_path} is already configured")
    entry = {"src_dir": src_path, "syncers": []}
    data["workspaces"].append(entry)
    return entry


def _remove_workspace(data, src_path: str) -> None:
    ws = find_workspace(data, src_path)
    if ws is None:
        raise ConfigurationError(f"workspace {src_path} is not configured")
    data["workspaces"].remove(ws)


def _add_syncer(data, src_path: str, args: argparse.Namespace) -> dict:
    ws = find_workspace(data, src_path)
    if ws is None:
        raise ConfigurationError(f"workspace {src_path} is not configured")
    entry = {"type": args.syncer_type, "dst_dir": args.dst_dir}
    if getattr(args, "dst_host", None):
        entry["dst_host"] = args.dst_host
    if getattr(args, "dst_user", None):
        entry["dst_user"] = args.dst_user
    syncers = ws.get("syncers")
    if not isinstance(syncers, list):
        syncers = ws["syncers"] = []
    syncers.append(entry)
    return entry


def _remove_syncers(data, src_path: str, syncer_type: str) -> int:
    ws = find_workspace(data, src_path)
    if ws is None:
        raise ConfigurationError(f"workspace {src_path} is not configured")
    syncers = ws.get("syncers") or []
    kept = [s for s in syncers if not (isinstance(s, dict) and s.get("type") == syncer_type)]
    ws["syncers"] = kept
    return len(syncers) - len(kept)


def cmd_workspace(args: argparse.Namespace) -> None:
    path = resolve_config_path(args)
    data = read_raw_config(path)
    action = args.workspace_command

    if action == "list":
        emit({"ok": True, "workspaces": workspace_summary(data)})
        return

    src_path = require_src_path(args, must_exist=(action == "add"))
    if action == "add":
        _add_workspace(data, src_path)
        result = {"ok": True, "added": src_path}
    elif action == "remove":
        _remove_workspace(data, src_path)
        result = {"ok": True, "removed": src_path}
    elif action == "syncers" and args.syncers_command == "add":
        entry = _add_syncer(data, src_path, args)
        result = {"ok": True, "workspace": src_path, "added": entry}
    elif action == "syncers" and args.syncers_command == "remove":
        removed = _remove_syncers(data, src_path, args.syncer_type)
        result = {"ok": True, "workspace": src_path, "removed": removed}
    else:
        raise ConfigurationError(f"unknown workspace command: {action}")

    write_raw_config(path, data)
    emit(result)
