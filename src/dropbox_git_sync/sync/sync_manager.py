"""Top-level driver wiring configuration, clients and orchestrators."""

import logging
from typing import Any, Dict, List, Optional

from ..auth.dropbox_auth import DropboxAuth
from ..config.settings import CredentialsConfig, SyncConfig, SyncDirection
from ..exceptions import ConfigurationError
from ..repository.git_client import GitRepoClient
from ..sources.dropbox_client import DropboxClient
from .change_resolver import ChangeSetResolver
from .cursor_store import CursorStore, FileCursorStorage
from .forward import ForwardSyncOrchestrator
from .models import RepoClient, StoreClient
from .reverse import ReverseSyncOrchestrator

logger = logging.getLogger(__name__)


class SyncManager:
    """Build the clients for one run and execute the orchestrator of the chosen direction."""

    def __init__(self, config: SyncConfig, credentials: Optional[CredentialsConfig] = None,
                 store: Optional[StoreClient] = None, repo: Optional[RepoClient] = None):
        """Initialize sync manager.

        Args:
            config: Sync configuration
            credentials: Dropbox and GitHub credentials (needed unless both
                clients are passed in)
            store: Dropbox client to use instead of the live one
            repo: Repository client to use instead of the live one
        """
        self.config = config
        self.credentials = credentials or CredentialsConfig()
        self._store = store
        self._repo = repo
        self.cursor_store = CursorStore(FileCursorStorage(config.sync.cursor_dir))

    @property
    def store(self) -> StoreClient:
        if self._store is None:
            auth = DropboxAuth.from_credentials(self.credentials, timeout=self.config.dropbox.timeout)
            self._store = DropboxClient(
                auth,
                timeout=self.config.dropbox.timeout,
                chunk_size=self.config.dropbox.chunk_size
            )
            logger.info("Dropbox client initialized")
        return self._store

    @property
    def repo(self) -> RepoClient:
        if self._repo is None:
            if not self.credentials.github_pat or not self.credentials.github_username:
                logger.warning("GitHub credentials not found, relying on the git credential setup")
            self._repo = GitRepoClient(
                self.config.sync.local_repo_path,
                self.config.github.remote_url,
                username=self.credentials.github_username,
                token=self.credentials.github_pat
            )
            logger.info("Git repository client initialized")
        return self._repo

    def _resolver(self) -> ChangeSetResolver:
        return ChangeSetResolver(
            self.store,
            self.cursor_store,
            self.config.sync.target_file_extensions,
            repo=self.repo
        )

    def create_orchestrator(self, direction: SyncDirection):
        """Select the orchestrator for a direction."""
        if direction == SyncDirection.FORWARD:
            return ForwardSyncOrchestrator(
                self.config.sync, self.store, self.repo, self.cursor_store, self._resolver()
            )
        if direction == SyncDirection.REVERSE:
            return ReverseSyncOrchestrator(self.config.sync, self.store, self.repo, self._resolver())
        raise ConfigurationError(f"Unknown sync direction: {direction}")

    def run(self, direction: Optional[SyncDirection] = None) -> List[Dict[str, Any]]:
        """Run one sync pass.

        Args:
            direction: Direction to sync; defaults to the configured one

        Returns:
            Per group/branch result dictionaries

        Raises:
            SyncError: On the first unrecovered failure
        """
        direction = direction or self.config.direction
        if direction is None:
            raise ConfigurationError("No sync direction given on the command line or in the config")

        logger.info(f"Selected sync direction: {direction.value}")
        return self.create_orchestrator(direction).run()

    def get_sync_summary(self, results: List[Dict[str, Any]]) -> Dict[str, Any]:
        """Aggregate per group/branch results."""
        return {
            'total': len(results),
            'completed': len([r for r in results if r['status'] == 'completed']),
            'skipped': len([r for r in results if r['status'] == 'skipped']),
            'files_downloaded': sum(r.get('files_downloaded', 0) for r in results),
            'files_deleted': sum(r.get('files_deleted', 0) for r in results),
            'files_uploaded': sum(r.get('files_uploaded', 0) for r in results),
            'duration': sum(r.get('duration', 0) for r in results),
        }

    def get_cursor_status(self) -> List[Dict[str, Any]]:
        """Cursor state of every configured group."""
        status = []
        for group in self.config.sync.target_directories:
            status.append({
                'group': group,
                'has_cursor': bool(self.cursor_store.read(group)),
                'pending': self.cursor_store.has_pending(group),
            })
        return status
