"""Value objects and client capabilities shared by the sync engine."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import FrozenSet, Iterator, List, Optional, Protocol, Tuple

NO_FILE = "/dev/null"


class SyncAction(str, Enum):
    """What has to happen to a file on the receiving side."""
    CREATE_OR_UPDATE = "create_or_update"
    DELETE = "delete"


@dataclass(frozen=True)
class StoreEntry:
    """One item of a Dropbox folder listing."""
    path: str
    name: str
    tag: str = "file"  # file, folder or deleted
    client_modified: Optional[str] = None
    size: int = 0

    @property
    def deleted(self) -> bool:
        return self.tag == "deleted"

    @property
    def is_folder(self) -> bool:
        return self.tag == "folder"


@dataclass(frozen=True)
class SyncEntry:
    """A changed Dropbox file to be applied to the repository."""
    location: str
    name: str
    group_key: str
    action: SyncAction


@dataclass(frozen=True)
class DiffEntry:
    """Paths on both sides of one tree diff entry (either may be missing)."""
    old_path: Optional[str]
    new_path: Optional[str]


@dataclass(frozen=True)
class CommitRange:
    """Range of commits to diff; ``old_head`` is None on a first sync."""
    new_head: str
    old_head: Optional[str] = None


@dataclass(frozen=True)
class ChangeSet:
    """Resolved changes of one group or branch for one sync pass.

    Forward changes carry ``entries`` plus the Dropbox ``cursor`` reached by
    the listing. Reverse changes carry repository-relative ``paths`` plus the
    ``head`` commit they were computed against.
    """
    entries: Tuple[SyncEntry, ...] = ()
    paths: FrozenSet[str] = frozenset()
    cursor: Optional[str] = None
    head: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return not self.entries and not self.paths

    def __len__(self) -> int:
        return len(self.entries) + len(self.paths)


class StoreClient(Protocol):
    """Capabilities the engine needs from the file store."""

    def list_groups(self) -> List[str]:
        ...

    def list_all(self, group: str) -> Tuple[List[StoreEntry], str]:
        ...

    def list_delta(self, cursor: str) -> Tuple[List[StoreEntry], bool, str]:
        ...

    def download(self, remote_path: str) -> Iterator[bytes]:
        ...

    def upload(self, local_file: Path, remote_path: str, last_modified: datetime) -> None:
        ...


class RepoClient(Protocol):
    """Capabilities the engine needs from the version-controlled repository."""

    def open_or_clone(self) -> None:
        ...

    def checkout(self, branch_name: str, create_if_missing: bool = False) -> None:
        ...

    def commit_all(self, message: str) -> Optional[str]:
        ...

    def push(self) -> None:
        ...

    def pull(self) -> Tuple[bool, Optional[str]]:
        ...

    def resolve_head(self) -> Optional[str]:
        ...

    def diff_trees(self, old_commit: Optional[str], new_commit: str) -> List[DiffEntry]:
        ...

    def list_local_branches(self) -> List[str]:
        ...

    def close(self) -> None:
        ...
