"""Shared fixtures: in-memory Dropbox and repository clients."""

import hashlib
from pathlib import Path

import pytest

from dropbox_git_sync.config.settings import SyncOptions
from dropbox_git_sync.sync.cursor_store import CursorStore, FileCursorStorage
from dropbox_git_sync.sync.models import StoreEntry


class FakeStoreClient:
    """Dropbox double holding files in a dict and scripted delta pages."""

    def __init__(self, files=None, groups=None):
        self.files = dict(files or {})
        self.groups = list(groups or [])
        self.delta_pages = []
        self.uploads = []
        self.calls = []
        self.list_all_token = "cursor-full"

    def list_groups(self):
        self.calls.append(("list_groups",))
        return list(self.groups)

    def list_all(self, group):
        self.calls.append(("list_all", group))
        prefix = group.rstrip("/").lower() + "/"
        entries = [
            StoreEntry(path=path, name=path.rsplit("/", 1)[-1])
            for path in self.files
            if path.lower().startswith(prefix)
        ]
        return entries, self.list_all_token

    def list_delta(self, cursor):
        self.calls.append(("list_delta", cursor))
        if not self.delta_pages:
            return [], False, cursor
        return self.delta_pages.pop(0)

    def download(self, remote_path):
        self.calls.append(("download", remote_path))
        return iter([self.files[remote_path]])

    def upload(self, local_file, remote_path, last_modified):
        self.calls.append(("upload", remote_path))
        self.uploads.append((remote_path, Path(local_file).read_bytes(), last_modified))


class FakeRepoClient:
    """Repository double over a plain directory.

    Every branch has a committed tree (path -> bytes). Checkout behaves like
    git: a clean work tree is replaced by the target branch's tree, a dirty
    one is carried over only when both branches have the same tree, and is
    refused otherwise. Committing an unchanged tree creates nothing.
    """

    def __init__(self, root, branches=None):
        self.root = Path(root)
        self.branches = list(branches or ["main"])
        self.current = self.branches[0] if self.branches else "main"
        self.trees = {branch: self._snapshot() for branch in self.branches}
        self.heads = {}
        self.pull_heads = {}
        self.pull_success = True
        self.diffs = {}
        self.commits = []
        self.calls = []

    def _snapshot(self):
        if not self.root.exists():
            return {}
        return {
            path.relative_to(self.root).as_posix(): path.read_bytes()
            for path in sorted(self.root.rglob("*"))
            if path.is_file()
        }

    def _restore(self, tree):
        for path in list(self.root.rglob("*")):
            if path.is_file():
                path.unlink()
        for relative, content in tree.items():
            path = self.root / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(content)

    def tree(self, branch):
        return dict(self.trees.get(branch, {}))

    def open_or_clone(self):
        self.calls.append(("open_or_clone",))
        self.root.mkdir(parents=True, exist_ok=True)

    def checkout(self, branch_name, create_if_missing=False):
        self.calls.append(("checkout", branch_name, create_if_missing))
        base = self.tree(self.current)
        if branch_name not in self.branches:
            if not create_if_missing:
                raise AssertionError(f"unexpected checkout of missing branch {branch_name}")
            self.branches.append(branch_name)
            self.trees[branch_name] = base
        if branch_name == self.current:
            return

        target = self.tree(branch_name)
        if self._snapshot() == base:
            self._restore(target)
        elif target != base:
            raise AssertionError(f"uncommitted changes would be overwritten by checkout of {branch_name}")
        self.current = branch_name

    def commit_all(self, message):
        self.calls.append(("commit_all", message))
        snapshot = self._snapshot()
        if snapshot == self.tree(self.current):
            return None
        self.trees[self.current] = snapshot
        commit_id = hashlib.sha1(repr(sorted(snapshot.items())).encode()).hexdigest()
        self.commits.append((self.current, commit_id, message))
        self.heads[self.current] = commit_id
        return commit_id

    def push(self):
        self.calls.append(("push", self.current))

    def pull(self):
        self.calls.append(("pull", self.current))
        if not self.pull_success:
            return False, None
        if self.current in self.pull_heads:
            self.heads[self.current] = self.pull_heads[self.current]
        return True, f"origin/{self.current}"

    def resolve_head(self):
        return self.heads.get(self.current)

    def diff_trees(self, old_commit, new_commit):
        self.calls.append(("diff_trees", old_commit, new_commit))
        return list(self.diffs.get((old_commit, new_commit), []))

    def list_local_branches(self):
        return list(self.branches)

    def close(self):
        self.calls.append(("close",))

    def call_names(self):
        return [call[0] for call in self.calls]


@pytest.fixture
def repo_root(tmp_path):
    return tmp_path / "repo"


@pytest.fixture
def cursor_dir(tmp_path):
    return tmp_path / "cursors"


@pytest.fixture
def cursor_store(cursor_dir):
    return CursorStore(FileCursorStorage(cursor_dir))


@pytest.fixture
def sync_options(repo_root, cursor_dir):
    return SyncOptions(
        local_repo_path=repo_root,
        cursor_dir=cursor_dir,
        target_file_extensions=[".txt"],
        target_directories=["/notes"],
        sync_target_dir="review",
        main_branch="main",
    )


@pytest.fixture
def store():
    return FakeStoreClient(groups=["/notes", "/other"])


@pytest.fixture
def repo(repo_root):
    return FakeRepoClient(repo_root)
