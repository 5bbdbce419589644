"""Synchronization targets invoked for every change in a workspace."""

from .base import Syncer
from .rsyncer import Rsyncer

__all__ = ["Syncer", "Rsyncer"]
