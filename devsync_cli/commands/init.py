"""Init command: write a starter config file."""
from __future__ import annotations

import argparse

from devsync.logger import ConfigurationError
from devsync_cli.core import emit, resolve_config_path

TEMPLATE = """\
# dev-sync configuration
global_config:
  # Glob patterns never synced. Relative patterns are anchored at each
  # workspace's src_dir and "*" also matches "/", so "*/.git/*" covers nested
  # repositories while ".git/*" covers the workspace's own.
  ignore:
    - ".git/*"
    - "*/.git/*"
    - "__pycache__/*"
    - "*/__pycache__/*"
  # Run at most one sync per target at a time instead of letting
  # back-to-back changes overlap.
  serialize_syncs: false
  rsync:
    # default_dst_host: devbox
    # default_dst_user: me
    flags: [Recursive, IncludeLinks, PreserveModTimes, Compress, DeleteAfter]
    excludes: [".git"]
    timeout_secs: 300
    ssh:
      options:
        - ConnectTimeout: 10
        - ControlMaster: auto
        - ControlPersist: 10m
        - ControlPath: GENERATE

workspaces: []
#  - src_dir: ~/code/project
#    ignore: ["build/*"]
#    syncers:
#      - type: rsync
#        dst_dir: /home/me/code/project
#        dst_host: devbox
"""


def cmd_init(args: argparse.Namespace) -> None:
    """Create the config file at the configured location."""
    path = resolve_config_path(args)
    if path.exists() and not getattr(args, "force", False):
        raise ConfigurationError(f"config file {path} already exists (use --force to overwrite)")
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(TEMPLATE, encoding="utf-8")
    emit({"ok": True, "config": str(path)})
