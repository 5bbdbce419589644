"""Sync command: watch all workspaces and sync on change (daemon mode)."""
from __future__ import annotations

import argparse

from devsync_cli.core import resolve_config_path


def cmd_sync(args: argparse.Namespace) -> None:
    """Continually sync workspaces until interrupted."""
    from devsync.watch import main as watch_main

    watch_main(resolve_config_path(args))
