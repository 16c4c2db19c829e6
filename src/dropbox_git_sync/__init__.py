"""
Dropbox/Git Sync Application

Mirrors Dropbox directories onto branches of a Git repository and back,
one incremental batch per invocation, with resumable per-directory cursors.
"""

__version__ = "1.0.0"
__author__ = "Dropbox Git Sync"
__description__ = "Incremental file sync between Dropbox and a Git repository"

from .config.settings import SyncConfig
from .sync.sync_manager import SyncManager

__all__ = ["SyncConfig", "SyncManager"]
