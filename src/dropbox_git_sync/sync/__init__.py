"""Sync engine for Dropbox <-> Git mirroring."""

from .change_resolver import ChangeSetResolver
from .cursor_store import CursorStore, FileCursorStorage
from .forward import ForwardSyncOrchestrator
from .reverse import ReverseSyncOrchestrator
from .sync_manager import SyncManager

__all__ = [
    "ChangeSetResolver",
    "CursorStore",
    "FileCursorStorage",
    "ForwardSyncOrchestrator",
    "ReverseSyncOrchestrator",
    "SyncManager",
]
