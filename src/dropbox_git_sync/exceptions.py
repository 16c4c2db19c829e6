"""Exception hierarchy for the sync engine."""


class SyncError(Exception):
    """Base class for every error raised by the sync engine."""


class ConfigurationError(SyncError):
    """Missing or invalid settings. Raised before any sync work starts."""


class RemoteStoreError(SyncError):
    """A Dropbox API call failed."""


class RemoteRepoError(SyncError):
    """A Git operation (local or against the remote) failed."""


class PersistenceError(SyncError):
    """Local file I/O failed (cursor files or the repository work tree)."""
