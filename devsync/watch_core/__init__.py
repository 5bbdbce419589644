"""Core building blocks for the watch daemon.

Modules:
    config: runtime settings read from the environment and the shared logger
    utils: observer factory and env helpers
    queue: unbounded event queue bridging the observer thread into asyncio
    handler: watchdog event handler translating events into ChangeEvents
    dispatcher: resolve, filter and fan out events to sync targets
"""

from . import config, utils, queue, handler, dispatcher

__all__ = [
    "config",
    "utils",
    "queue",
    "handler",
    "dispatcher",
]
