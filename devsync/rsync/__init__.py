"""rsync invocation: flag/option models, the SSH remote shell and the async runner."""

from .cli import RsyncFlag, RsyncOption
from .command import build_command, run_rsync
from .shell import SSHOption, SSHShell

__all__ = [
    "RsyncFlag",
    "RsyncOption",
    "SSHOption",
    "SSHShell",
    "build_command",
    "run_rsync",
]
