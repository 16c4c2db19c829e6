"""Git -> Dropbox synchronization."""

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List

from ..config.settings import SyncOptions
from ..exceptions import RemoteRepoError
from ..utils.logging import TimedOperation
from ..utils.paths import PathMapper
from .change_resolver import ChangeSetResolver
from .models import CommitRange, RepoClient, StoreClient

logger = logging.getLogger(__name__)


class ReverseSyncOrchestrator:
    """Upload files changed on each local branch to the Dropbox folder of that branch.

    Only files below ``sync_target_dir`` are mirrored, to
    ``/<branch>/<path below sync_target_dir>``. Paths that are no longer
    regular files (deleted in the repository) are skipped, not deleted from
    Dropbox.
    """

    def __init__(self, options: SyncOptions, store: StoreClient, repo: RepoClient,
                 resolver: ChangeSetResolver):
        self.options = options
        self.store = store
        self.repo = repo
        self.resolver = resolver
        self.repo_root = Path(options.local_repo_path)

    def run(self) -> List[Dict[str, Any]]:
        """Sync every local branch once.

        Returns:
            One result dictionary per processed branch
        """
        logger.info("Starting Git -> Dropbox synchronization")
        results = []
        try:
            self.repo.open_or_clone()
            branches = self.repo.list_local_branches()
            logger.info(f"Processing {len(branches)} branches for Git -> Dropbox sync")

            for branch in branches:
                results.append(self._sync_branch(branch))

            if self.options.main_branch in branches:
                self.repo.checkout(self.options.main_branch, create_if_missing=False)
        finally:
            self.repo.close()

        logger.info("✅ Git -> Dropbox synchronization completed")
        return results

    def _sync_branch(self, branch: str) -> Dict[str, Any]:
        result = {
            'name': branch,
            'direction': 'reverse',
            'status': 'completed',
            'files_downloaded': 0,
            'files_deleted': 0,
            'files_uploaded': 0,
            'files_filtered': 0,
        }

        with TimedOperation(logger, f"sync of branch {branch}") as timer:
            self.repo.checkout(branch, create_if_missing=False)
            old_head = self.repo.resolve_head()

            success, fetched_ref = self.repo.pull()
            if not success:
                raise RemoteRepoError(f"Pull failed for branch {branch}")
            logger.debug(f"Pulled branch {branch} from {fetched_ref or 'no upstream'}")

            new_head = self.repo.resolve_head()
            if new_head is None or new_head == old_head:
                logger.info(f"No changes detected for branch {branch}")
                result['status'] = 'skipped'
            else:
                change_set = self.resolver.resolve_repo_changes(
                    CommitRange(old_head=old_head, new_head=new_head)
                )
                self._upload_changes(branch, sorted(change_set.paths), result)

        result['duration'] = timer.duration
        return result

    def _upload_changes(self, branch: str, paths: List[str], result: Dict[str, Any]) -> None:
        target_dir = self.options.sync_target_dir
        logger.info(f"Target directory filter: '{target_dir}'")

        non_files = 0
        for path in paths:
            if not PathMapper.is_under(path, target_dir):
                logger.debug(f"File '{path}' filtered out (not under '{target_dir}')")
                result['files_filtered'] += 1
                continue

            local_path = self.repo_root / path
            if not local_path.is_file():
                logger.debug(f"Skipping non-file path: {local_path}")
                non_files += 1
                continue

            remote_path = PathMapper.compose_remote_path(branch, PathMapper.relative_to(path, target_dir))
            last_modified = datetime.fromtimestamp(local_path.stat().st_mtime, tz=timezone.utc)
            logger.info(f"Uploading {local_path} -> Dropbox: {remote_path}")
            self.store.upload(local_path, remote_path, last_modified)
            result['files_uploaded'] += 1

        logger.info(
            f"Branch {branch} summary: {result['files_uploaded']} uploaded, "
            f"{result['files_filtered']} filtered out, {non_files} non-files skipped"
        )
