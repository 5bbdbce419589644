"""CLI entry point: argparse dispatcher for all subcommands."""
from __future__ import annotations

import argparse
import json
import sys
import traceback


# ---------------------------------------------------------------------------
# Command registry: command name → (module_path, function_name)
# Lazy-imported at dispatch time to keep startup fast.
# ---------------------------------------------------------------------------
COMMANDS = {
    "sync":      ("devsync_cli.commands.sync",      "cmd_sync"),
    "init":      ("devsync_cli.commands.init",      "cmd_init"),
    "workspace": ("devsync_cli.commands.workspace", "cmd_workspace"),
}


# ---------------------------------------------------------------------------
# Parser builder
# ---------------------------------------------------------------------------
def _add_syncer_type_arg(p: argparse.ArgumentParser) -> None:
    from devsync.config import SYNCER_TYPES

    p.add_argument("-t", "--type", dest="syncer_type", required=True,
                   choices=sorted(SYNCER_TYPES), help="Syncer type")


def build_parser() -> argparse.ArgumentParser:
    from devsync_cli._version import __version__

    parser = argparse.ArgumentParser(
        prog="dev-sync",
        description="Mirror local workspaces to remote hosts as files change",
    )
    parser.add_argument("-c", "--config",
                        help="Path of the config file specifying workspaces to sync and syncers to use")
    parser.add_argument("--debug", action="store_true", help="Show stack traces on error")
    parser.add_argument("-v", "--version", action="version", version=f"%(prog)s {__version__}")
    sub = parser.add_subparsers(dest="command", required=True)

    # sync
    sub.add_parser("sync", help="Continually sync workspaces")

    # init
    p = sub.add_parser("init", help="Initialize config file")
    p.add_argument("--force", action="store_true", help="Overwrite an existing config file")

    # workspace
    p = sub.add_parser("workspace", help="Operations on workspaces")
    p.add_argument("-s", "--src-path", help="Source directory of the workspace")
    ws_sub = p.add_subparsers(dest="workspace_command", required=True)
    ws_sub.add_parser("add", help="Add a new workspace to the config file")
    ws_sub.add_parser("remove", help="Remove a workspace from the config file")
    ws_sub.add_parser("list", help="List configured workspaces")

    sp = ws_sub.add_parser("syncers", help="Perform operations on workspace syncers")
    syncer_sub = sp.add_subparsers(dest="syncers_command", required=True)
    q = syncer_sub.add_parser("add", help="Add a syncer to a workspace")
    _add_syncer_type_arg(q)
    q.add_argument("--dst-dir", required=True, help="Destination directory")
    q.add_argument("--dst-host", help="Destination host")
    q.add_argument("--dst-user", help="Destination user")
    q = syncer_sub.add_parser("remove", help="Remove a certain syncer from a workspace")
    _add_syncer_type_arg(q)

    return parser


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------
def main(argv=None) -> None:
    parser = build_parser()
    args = parser.parse_args(sys.argv[1:] if argv is None else argv)

    entry = COMMANDS.get(args.command)
    if not entry:
        parser.print_help()
        sys.exit(1)

    mod_path, fn_name = entry
    try:
        import importlib
        mod = importlib.import_module(mod_path)
        fn = getattr(mod, fn_name)
        fn(args)
    except KeyboardInterrupt:
        sys.exit(130)
    except Exception as exc:
        json.dump({"ok": False, "error": str(exc)}, sys.stdout, default=str)
        sys.stdout.write("\n")
        if args.debug:
            traceback.print_exc(file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
