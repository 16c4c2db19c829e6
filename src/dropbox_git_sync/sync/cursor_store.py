"""Durable per-group Dropbox cursors with two-phase commit."""

import logging
import os
from pathlib import Path
from typing import List, Optional, Union

from ..exceptions import PersistenceError
from ..utils.paths import PathMapper

logger = logging.getLogger(__name__)

TENTATIVE_SUFFIX = ".tmp"


class FileCursorStorage:
    """One small text file per key below a root directory."""

    def __init__(self, root: Union[str, Path]):
        """Initialize storage.

        Args:
            root: Directory holding the cursor files (created on first write)
        """
        self.root = Path(root)

    def _path(self, key: str) -> Path:
        return self.root / key

    def exists(self, key: str) -> bool:
        return self._path(key).is_file()

    def read(self, key: str) -> Optional[str]:
        """Return the stored value, or None if the key has never been written.

        Raises:
            OSError: If the file exists but cannot be read
        """
        path = self._path(key)
        if not path.is_file():
            return None
        return path.read_text(encoding='utf-8')

    def write(self, key: str, value: str) -> None:
        """Write a value and force it to disk.

        Raises:
            OSError: If the directory or file cannot be written
        """
        self.root.mkdir(parents=True, exist_ok=True)
        with open(self._path(key), 'w', encoding='utf-8') as f:
            f.write(value)
            f.flush()
            os.fsync(f.fileno())

    def delete(self, key: str) -> None:
        """Remove a key.

        Raises:
            OSError: If the file cannot be removed (including when missing)
        """
        self._path(key).unlink()

    def keys(self) -> List[str]:
        if not self.root.is_dir():
            return []
        return sorted(p.name for p in self.root.iterdir() if p.is_file())


class CursorStore:
    """Final and tentative cursor slots per group.

    A run writes the tentative cursor right after listing changes and only
    promotes it to final once the changes are applied. A crash in between
    leaves the old final cursor in place, so the next run replays the same
    changes.
    """

    def __init__(self, storage: FileCursorStorage):
        self.storage = storage

    @staticmethod
    def _key(group: str) -> str:
        return PathMapper.group_to_branch(PathMapper.normalize(group))

    @classmethod
    def _tentative_key(cls, group: str) -> str:
        return cls._key(group) + TENTATIVE_SUFFIX

    def read(self, group: str) -> str:
        """Return the final cursor of a group, or an empty string if none exists."""
        key = self._key(group)
        try:
            cursor = self.storage.read(key)
        except OSError as e:
            logger.debug(f"Could not read cursor for {key}: {e}")
            return ""

        if not cursor:
            logger.info(f"No cursor found for group: {key}")
            return ""

        logger.debug(f"Cursor read for group: {key}")
        return cursor

    def write_tentative(self, group: str, token: str) -> None:
        """Persist a cursor in the tentative slot of a group.

        Raises:
            PersistenceError: If the cursor cannot be written
        """
        key = self._tentative_key(group)
        try:
            self.storage.write(key, token)
        except OSError as e:
            raise PersistenceError(f"Cannot write tentative cursor {key}: {e}") from e
        logger.debug(f"Tentative cursor written for group: {self._key(group)}")

    def commit(self, group: str) -> None:
        """Promote the tentative cursor of a group to final.

        Raises:
            PersistenceError: If there is no tentative cursor to promote or
                the final cursor cannot be written
        """
        key = self._key(group)
        tentative_key = self._tentative_key(group)

        try:
            token = self.storage.read(tentative_key)
        except OSError as e:
            raise PersistenceError(f"Cannot read tentative cursor {tentative_key}: {e}") from e
        if token is None:
            raise PersistenceError(
                f"No tentative cursor for group {key}; commit called without write_tentative"
            )

        try:
            self.storage.write(key, token)
        except OSError as e:
            raise PersistenceError(f"Cannot write cursor {key}: {e}") from e

        try:
            self.storage.delete(tentative_key)
        except OSError as e:
            # The next write_tentative overwrites the leftover file.
            logger.warning(f"Failed to delete tentative cursor {tentative_key}: {e}")

        logger.info(f"Cursor committed for group: {key}")

    def has_pending(self, group: str) -> bool:
        """Whether a tentative cursor is waiting for promotion."""
        return self.storage.exists(self._tentative_key(group))

    def groups(self) -> List[str]:
        """Groups that have a final cursor."""
        return [key for key in self.storage.keys() if not key.endswith(TENTATIVE_SUFFIX)]
