"""Change detection for both sync directions."""

import logging
from typing import Iterable, List, Optional, Set

from ..exceptions import SyncError
from ..utils.paths import PathMapper
from .cursor_store import CursorStore
from .models import (NO_FILE, ChangeSet, CommitRange, RepoClient, StoreClient,
                     StoreEntry, SyncAction, SyncEntry)

logger = logging.getLogger(__name__)


class ChangeSetResolver:
    """Compute what changed since the last sync point.

    Dropbox changes come from folder listings (full on the first sync, delta
    from the stored cursor afterwards). Repository changes come from a tree
    diff between the HEAD before and after a pull.
    """

    def __init__(self, store: StoreClient, cursor_store: CursorStore,
                 extensions: Iterable[str], repo: Optional[RepoClient] = None):
        """Initialize resolver.

        Args:
            store: Dropbox client
            cursor_store: Cursor persistence, receives the tentative cursor
            extensions: File name suffixes to sync (e.g. ``.md``)
            repo: Repository client, required for reverse changes
        """
        self.store = store
        self.cursor_store = cursor_store
        self.extensions = list(extensions)
        self.repo = repo

    def resolve_store_changes(self, group: str, cursor: str = "") -> ChangeSet:
        """List Dropbox changes of a group and stage the new cursor.

        Args:
            group: Dropbox group directory (``/notes``)
            cursor: Final cursor from the previous run, empty for a first sync

        Returns:
            ChangeSet with the matching entries and the cursor reached

        Raises:
            RemoteStoreError: If listing fails
            PersistenceError: If the tentative cursor cannot be written
        """
        if cursor:
            logger.info(f"Cursor found for {group}, fetching changes since last sync")
            entries, token = self._list_delta(cursor)
        else:
            logger.info(f"No cursor for {group}, fetching all files")
            entries, token = self.store.list_all(group)

        sync_entries = self._to_sync_entries(entries, classify=bool(cursor))
        logger.info(f"Found {len(sync_entries)} entries to sync for {group}")

        # Checkpoint the end of the traversal; promoted after apply succeeds
        self.cursor_store.write_tentative(group, token)
        return ChangeSet(entries=tuple(sync_entries), cursor=token)

    def _list_delta(self, cursor: str):
        entries: List[StoreEntry] = []
        has_more = True
        pages = 0
        while has_more:
            page, has_more, cursor = self.store.list_delta(cursor)
            entries.extend(page)
            pages += 1
        logger.debug(f"Delta listing returned {len(entries)} entries in {pages} page(s)")
        return entries, cursor

    def _to_sync_entries(self, entries: Iterable[StoreEntry], classify: bool) -> List[SyncEntry]:
        sync_entries = []
        for entry in entries:
            if entry.is_folder:
                continue
            if not PathMapper.matches_extension(entry.name, self.extensions):
                continue

            if classify and entry.deleted:
                action = SyncAction.DELETE
            else:
                action = SyncAction.CREATE_OR_UPDATE

            sync_entries.append(SyncEntry(
                location=entry.path,
                name=entry.name,
                group_key=PathMapper.first_segment(entry.path),
                action=action,
            ))
        return sync_entries

    def resolve_repo_changes(self, commit_range: CommitRange) -> ChangeSet:
        """Collect every path touched between two commits.

        Additions, modifications, renames and deletions all end up in one
        set; callers check the work tree to decide what to do with each path.

        Args:
            commit_range: Old (possibly absent) and new HEAD

        Returns:
            ChangeSet with normalized relative paths

        Raises:
            RemoteRepoError: If the diff cannot be computed
        """
        if self.repo is None:
            raise SyncError("Repository client required to resolve repository changes")

        old_label = commit_range.old_head[:7] if commit_range.old_head else "empty tree"
        logger.info(f"Computing diff between commits: {old_label} -> {commit_range.new_head[:7]}")

        touched: Set[str] = set()
        for diff in self.repo.diff_trees(commit_range.old_head, commit_range.new_head):
            for path in (diff.old_path, diff.new_path):
                if path and path != NO_FILE:
                    touched.add(PathMapper.normalize(path))

        touched.discard("")
        logger.info(f"Detected {len(touched)} changed files between commits")
        return ChangeSet(paths=frozenset(touched), head=commit_range.new_head)
