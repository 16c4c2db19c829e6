"""Dropbox -> Git synchronization."""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..config.settings import SyncOptions
from ..exceptions import PersistenceError
from ..utils.logging import TimedOperation
from ..utils.paths import PathMapper
from .change_resolver import ChangeSetResolver
from .cursor_store import CursorStore
from .models import ChangeSet, RepoClient, StoreClient, SyncAction, SyncEntry

logger = logging.getLogger(__name__)


class ForwardSyncOrchestrator:
    """Mirror each configured Dropbox directory onto the branch of the same name.

    Per group: read cursor, resolve changes, check out the group branch,
    download the changes into its work tree, commit and push, go back to the
    main branch and only then promote the cursor. Group files are tracked on
    the group branch only, so changes are applied after the switch. A failure
    stops the run; groups finished earlier keep their advanced cursors.
    """

    def __init__(self, options: SyncOptions, store: StoreClient, repo: RepoClient,
                 cursor_store: CursorStore, resolver: ChangeSetResolver):
        self.options = options
        self.store = store
        self.repo = repo
        self.cursor_store = cursor_store
        self.resolver = resolver
        self.repo_root = Path(options.local_repo_path)

    def run(self) -> List[Dict[str, Any]]:
        """Sync every configured group once.

        Returns:
            One result dictionary per processed group
        """
        logger.info("Starting Dropbox -> Git synchronization")
        results = []
        try:
            self.repo.open_or_clone()
            groups = self._target_groups()
            logger.info(f"Found {len(groups)} target directories to process")

            for group in groups:
                results.append(self._sync_group(group))
        finally:
            self.repo.close()

        logger.info("✅ Dropbox -> Git synchronization completed")
        return results

    def _target_groups(self) -> List[str]:
        """Configured directories that exist at the Dropbox root, in configured order."""
        available = {PathMapper.normalize(group).lower() for group in self.store.list_groups()}

        groups = []
        for group in self.options.target_directories:
            if PathMapper.normalize(group).lower() in available:
                groups.append(PathMapper.branch_to_group(PathMapper.normalize(group)))
            else:
                logger.warning(f"Configured directory not found in Dropbox, skipping: {group}")
        return groups

    def _sync_group(self, group: str) -> Dict[str, Any]:
        branch = PathMapper.group_to_branch(group)
        result = {
            'name': group,
            'direction': 'forward',
            'status': 'completed',
            'files_downloaded': 0,
            'files_deleted': 0,
            'files_uploaded': 0,
            'files_filtered': 0,
        }

        with TimedOperation(logger, f"sync of {group}") as timer:
            if self.cursor_store.has_pending(group):
                logger.warning(f"Found uncommitted cursor for {group} from an interrupted run, replaying")

            cursor = self.cursor_store.read(group)
            change_set = self.resolver.resolve_store_changes(group, cursor)

            if change_set.is_empty:
                logger.info(f"No changes detected for directory: {group}")
                result['status'] = 'skipped'
            else:
                logger.debug(f"Starting Git operations for directory: {group}")
                self.repo.checkout(branch, create_if_missing=True)
                self._apply(change_set, result)
                self._publish(group, branch, change_set)

            # Strictly after the push: a crash before this line replays the group
            self.cursor_store.commit(group)

        result['duration'] = timer.duration
        return result

    def _apply(self, change_set: ChangeSet, result: Dict[str, Any]) -> None:
        logger.info(f"Applying {len(change_set.entries)} changes to {self.repo_root}")
        for entry in change_set.entries:
            local_path = self._local_path(entry)
            if local_path is None:
                continue
            if entry.action == SyncAction.CREATE_OR_UPDATE:
                self._download(entry, local_path)
                result['files_downloaded'] += 1
            else:
                if self._delete(local_path):
                    result['files_deleted'] += 1

    def _local_path(self, entry: SyncEntry) -> Optional[Path]:
        relative = PathMapper.strip_group(entry.location)
        if not relative:
            logger.warning(f"Skipping entry outside any group directory: {entry.location}")
            return None
        return self.repo_root / relative

    def _download(self, entry: SyncEntry, local_path: Path) -> None:
        logger.debug(f"Downloading {entry.location} -> {local_path}")
        try:
            local_path.parent.mkdir(parents=True, exist_ok=True)
            with open(local_path, 'wb') as f:
                for chunk in self.store.download(entry.location):
                    f.write(chunk)
        except OSError as e:
            raise PersistenceError(f"Cannot write {local_path}: {e}") from e

    def _delete(self, local_path: Path) -> bool:
        logger.debug(f"Deleting {local_path}")
        try:
            local_path.unlink()
        except FileNotFoundError:
            # Already gone, e.g. replay of a change set after a crash
            logger.debug(f"File already absent: {local_path}")
            return False
        except OSError as e:
            raise PersistenceError(f"Cannot delete {local_path}: {e}") from e
        return True

    def _publish(self, group: str, branch: str, change_set: ChangeSet) -> None:
        message = self.options.commit_message.format(count=len(change_set), group=group)

        commit_id = self.repo.commit_all(message)
        if commit_id:
            logger.info(f"Committed {commit_id[:7]} on branch {branch}")
        else:
            logger.info(f"Nothing new to commit on branch {branch}")
        self.repo.push()
        self.repo.checkout(self.options.main_branch, create_if_missing=False)
        logger.debug(f"Git operations completed for directory: {group}")
