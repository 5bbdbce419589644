"""Build and run rsync as an asyncio subprocess."""
from __future__ import annotations

import asyncio
from typing import List, Optional, Sequence

from devsync.logger import SyncError, get_logger

from .cli import RsyncFlag, RsyncOption
from .shell import SSHShell

logger = get_logger(__name__)

# Seconds to wait for rsync to exit after SIGTERM before killing it
TERMINATE_GRACE_SECS = 5.0


def build_command(
    src: str,
    dst: str,
    dst_host: Optional[str] = None,
    dst_user: Optional[str] = None,
    shell: Optional[SSHShell] = None,
    flags: Sequence[RsyncFlag] = (),
    options: Sequence[RsyncOption] = (),
) -> List[str]:
    """Return the rsync argv mirroring ``src`` into ``[user@]host:dst``."""
    cmd = ["rsync"]
    for flag in flags:
        cmd.append(flag.as_cli_arg())
    if shell is not None:
        cmd.extend(["-e", shell.as_arg()])
    for opt in options:
        cmd.extend(opt.as_cli_args())
    cmd.append(src)
    host = "@".join(part for part in (dst_user, dst_host) if part)
    cmd.append(f"{host}:{dst}" if host else dst)
    return cmd


def _decode(data: Optional[bytes]) -> str:
    return data.decode("utf-8", errors="replace") if data else ""


async def run_rsync(cmd: Sequence[str], timeout: Optional[float] = None) -> str:
    """Run ``cmd`` and return its stdout.

    Raises:
        SyncError: if rsync cannot be started, exits non-zero or times out.
    """
    logger.info("Running: %s", " ".join(cmd))
    try:
        process = await asyncio.create_subprocess_exec(
            *cmd,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as exc:
        raise SyncError(f"Error running command {cmd[0]!r}: {exc}") from exc

    try:
        stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout)
    except asyncio.TimeoutError:
        logger.warning("rsync timed out after %ss, terminating", timeout)
        try:
            process.terminate()
            await asyncio.wait_for(process.wait(), timeout=TERMINATE_GRACE_SECS)
        except asyncio.TimeoutError:
            logger.warning("rsync did not terminate, killing")
            process.kill()
            await process.wait()
        except ProcessLookupError:
            pass
        raise SyncError(f"rsync timed out after {timeout}s") from None

    out, err = _decode(stdout), _decode(stderr)
    if process.returncode != 0:
        raise SyncError(f"Error Status: {process.returncode}, StdErr:\n{err}")
    if err:
        logger.info("rsync stderr:\n%s", err.rstrip())
    if out:
        logger.debug("rsync stdout:\n%s", out.rstrip())
    return out


__all__ = ["build_command", "run_rsync", "TERMINATE_GRACE_SECS"]
