"""Git operations on the local clone of the synced repository."""

import logging
from pathlib import Path
from typing import List, Optional, Tuple, Union
from urllib.parse import quote, urlsplit, urlunsplit

from git import (NULL_TREE, GitCommandError, InvalidGitRepositoryError,
                 NoSuchPathError, PushInfo, Repo)
from git.exc import BadName

from ..exceptions import RemoteRepoError
from ..sync.models import DiffEntry

logger = logging.getLogger(__name__)

REMOTE_NAME = "origin"


def build_remote_url(remote_url: str, username: Optional[str], token: Optional[str]) -> str:
    """Embed HTTPS credentials into a remote URL.

    SSH and local URLs, and URLs that already carry credentials, are
    returned unchanged.
    """
    parts = urlsplit(remote_url)
    if parts.scheme not in ("http", "https") or not username or not token or "@" in parts.netloc:
        return remote_url

    netloc = f"{quote(username, safe='')}:{quote(token, safe='')}@{parts.netloc}"
    return urlunsplit((parts.scheme, netloc, parts.path, parts.query, parts.fragment))


class GitRepoClient:
    """Clone, branch, commit, push and pull through GitPython."""

    def __init__(self, local_path: Union[str, Path], remote_url: str,
                 username: Optional[str] = None, token: Optional[str] = None):
        """Initialize repository client.

        Args:
            local_path: Directory of the local work tree
            remote_url: URL of the remote repository
            username: User for HTTPS authentication
            token: Personal access token for HTTPS authentication
        """
        self.local_path = Path(local_path)
        self.remote_url = remote_url
        self._clone_url = build_remote_url(remote_url, username, token)
        self._repo: Optional[Repo] = None

    @property
    def repo(self) -> Repo:
        if self._repo is None:
            raise RemoteRepoError("Repository not opened; call open_or_clone() first")
        return self._repo

    def open_or_clone(self) -> None:
        """Open the local work tree, cloning the remote first if it does not exist.

        Raises:
            RemoteRepoError: If the directory is not a repository or cloning fails
        """
        if (self.local_path / ".git").exists():
            try:
                self._repo = Repo(self.local_path)
            except (InvalidGitRepositoryError, NoSuchPathError) as e:
                raise RemoteRepoError(f"Not a git repository: {self.local_path}") from e
            logger.info(f"Git repository already exists at: {self.local_path}")
            return

        logger.info(f"Cloning Git repository from: {self.remote_url}")
        try:
            self._repo = Repo.clone_from(self._clone_url, self.local_path)
        except GitCommandError as e:
            raise RemoteRepoError(f"Cloning {self.remote_url} into {self.local_path} failed") from e
        logger.info(f"Git repository cloned successfully to: {self.local_path}")

    def _remote(self):
        try:
            return self.repo.remote(REMOTE_NAME)
        except ValueError as e:
            raise RemoteRepoError(f"Remote '{REMOTE_NAME}' is not configured") from e

    def checkout(self, branch_name: str, create_if_missing: bool = False) -> None:
        """Switch to a branch.

        A branch missing locally is created from ``origin/<branch>`` when the
        remote has it, else from the current HEAD if ``create_if_missing``.

        Raises:
            RemoteRepoError: If the branch does not exist and may not be created,
                or git refuses the checkout
        """
        branch_name = branch_name.lstrip("/")
        repo = self.repo

        try:
            if branch_name in repo.heads:
                logger.debug(f"Branch '{branch_name}' exists. Checking out.")
                repo.heads[branch_name].checkout()
            else:
                remote_ref = self._remote_ref(branch_name)
                if remote_ref is not None:
                    logger.debug(f"Branch '{branch_name}' found on remote. Creating tracking branch.")
                    head = repo.create_head(branch_name, remote_ref)
                    head.set_tracking_branch(remote_ref)
                elif create_if_missing:
                    logger.debug(f"Branch '{branch_name}' does not exist. Creating new branch.")
                    head = repo.create_head(branch_name)
                else:
                    raise RemoteRepoError(f"Branch does not exist: {branch_name}")
                head.checkout()
        except GitCommandError as e:
            raise RemoteRepoError(f"Checking out branch {branch_name} failed") from e

        logger.info(f"Checked out branch: {branch_name}")

    def _remote_ref(self, branch_name: str):
        if REMOTE_NAME not in [remote.name for remote in self.repo.remotes]:
            return None
        for ref in self.repo.remote(REMOTE_NAME).refs:
            if ref.remote_head == branch_name:
                return ref
        return None

    def commit_all(self, message: str) -> Optional[str]:
        """Stage every change in the work tree and commit it.

        Returns:
            The new commit id, or None when there was nothing to commit
        """
        repo = self.repo
        try:
            repo.git.add(A=True)
            if repo.head.is_valid() and not repo.index.diff("HEAD"):
                logger.info("Nothing to commit")
                return None
            repo.git.commit("-m", message)
        except GitCommandError as e:
            raise RemoteRepoError("Adding or committing failed") from e

        commit_id = repo.head.commit.hexsha
        logger.info(f"Files added and committed successfully ({commit_id[:7]})")
        return commit_id

    def push(self) -> None:
        """Push the active branch to origin and track it.

        Raises:
            RemoteRepoError: If the push fails or a ref is rejected
        """
        branch = self.repo.active_branch.name
        try:
            push_infos = self._remote().push(refspec=f"{branch}:{branch}", set_upstream=True)
        except GitCommandError as e:
            raise RemoteRepoError(f"Pushing branch {branch} failed") from e

        for info in push_infos:
            if info.flags & (PushInfo.ERROR | PushInfo.REJECTED | PushInfo.REMOTE_REJECTED):
                raise RemoteRepoError(f"Push of {branch} rejected: {info.summary.strip()}")
        logger.info(f"Changes pushed successfully for branch {branch}")

    def pull(self) -> Tuple[bool, Optional[str]]:
        """Pull the tracking branch of the active branch.

        Returns:
            ``(success, fetched_ref)``. A branch without upstream has nothing
            to pull and reports ``(True, None)``.
        """
        branch = self.repo.active_branch
        tracking = branch.tracking_branch()
        if tracking is None:
            logger.info(f"Branch {branch.name} has no upstream, nothing to pull")
            return True, None

        logger.info(f"Pulling latest changes on {branch.name} from {tracking.name}")
        try:
            self._remote().pull(tracking.remote_head)
        except GitCommandError as e:
            logger.warning(f"Pull failed for branch {branch.name}: {e}")
            return False, None

        return True, tracking.name

    def resolve_head(self) -> Optional[str]:
        """Return the commit id of HEAD, or None in an empty repository."""
        try:
            return self.repo.head.commit.hexsha
        except ValueError:
            return None

    def diff_trees(self, old_commit: Optional[str], new_commit: str) -> List[DiffEntry]:
        """Path-level diff between two commits (old None = empty tree)."""
        try:
            new = self.repo.commit(new_commit)
            if old_commit is None:
                # Diffing new against the empty tree lists every file it holds
                diffs = new.diff(NULL_TREE)
            else:
                diffs = self.repo.commit(old_commit).diff(new)
        except (BadName, ValueError, GitCommandError) as e:
            raise RemoteRepoError(f"Diff between {old_commit} and {new_commit} failed") from e

        logger.info(f"Git diff returned {len(diffs)} entries")
        return [DiffEntry(old_path=diff.a_path, new_path=diff.b_path) for diff in diffs]

    def list_local_branches(self) -> List[str]:
        return [head.name for head in self.repo.heads]

    def close(self) -> None:
        """Release the GitPython handles."""
        if self._repo is not None:
            self._repo.close()
            self._repo = None
