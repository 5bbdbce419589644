"""Runtime settings for the watch daemon and its logger."""

from __future__ import annotations

import os

from devsync.logger import get_logger, safe_bool, safe_float


def build_logger():
    json_format = safe_bool(os.environ.get("DEVSYNC_LOG_JSON"), False)
    return get_logger("devsync.watch", json_format=json_format)


LOGGER = build_logger()

# Use watchdog's polling observer (network filesystems, containers)
USE_POLLING = safe_bool(os.environ.get("WATCH_USE_POLLING"), False, LOGGER, "WATCH_USE_POLLING")

# Polling interval; only meaningful with USE_POLLING
POLL_INTERVAL_SECS = safe_float(
    os.environ.get("WATCH_POLL_INTERVAL_SECS"), 1.0, LOGGER, "WATCH_POLL_INTERVAL_SECS"
)
