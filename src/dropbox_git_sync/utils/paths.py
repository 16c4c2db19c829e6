"""Path normalization and directory/branch mapping rules."""

import re
from typing import Iterable, Optional

SEPARATOR = "/"
_REPEATED_SEPARATORS = re.compile(r"/{2,}")


class PathMapper:
    """Pure helpers mapping Dropbox paths, repo paths and branch names."""

    @staticmethod
    def normalize(path: Optional[str]) -> str:
        """Normalize a path to the relative, forward-slash form.

        Backslashes become ``/``, runs of ``/`` collapse to one and a single
        leading ``/`` is stripped.

        Args:
            path: Path in Dropbox, Git or OS notation

        Returns:
            Normalized path (empty string for empty input)
        """
        if not path:
            return ""

        normalized = _REPEATED_SEPARATORS.sub(SEPARATOR, path.replace("\\", SEPARATOR))
        if normalized.startswith(SEPARATOR):
            normalized = normalized[1:]
        return normalized

    @staticmethod
    def first_segment(path: Optional[str]) -> str:
        """Return the first directory of an absolute path.

        Example: ``/foo/bar.txt`` -> ``foo``. Paths not starting with ``/``
        (bare file names) have no such segment and yield an empty string.
        """
        if not path or not path.startswith(SEPARATOR):
            return ""

        parts = path.split(SEPARATOR)
        return parts[1] if len(parts) > 1 else ""

    @staticmethod
    def group_to_branch(group: Optional[str]) -> str:
        """Map a Dropbox group directory (``/notes``) to its branch (``notes``)."""
        if not group:
            return ""
        return group[1:] if group.startswith(SEPARATOR) else group

    @staticmethod
    def branch_to_group(branch: Optional[str]) -> str:
        """Map a branch name (``notes``) to its Dropbox group directory (``/notes``)."""
        if not branch:
            return ""
        return branch if branch.startswith(SEPARATOR) else SEPARATOR + branch

    @staticmethod
    def ensure_trailing_separator(path: str) -> str:
        if not path or path.endswith(SEPARATOR):
            return path
        return path + SEPARATOR

    @staticmethod
    def is_under(path: Optional[str], group_prefix: Optional[str]) -> bool:
        """Check whether ``path`` lies below ``group_prefix``.

        Both sides are normalized first. An empty prefix stands for the whole
        tree and matches every non-empty path.
        """
        normalized = PathMapper.normalize(path)
        if not normalized:
            return False

        prefix = PathMapper.ensure_trailing_separator(PathMapper.normalize(group_prefix))
        return normalized.startswith(prefix)

    @staticmethod
    def relative_to(path: Optional[str], group_prefix: Optional[str]) -> str:
        """Return the part of ``path`` below ``group_prefix``.

        Callers are expected to check :meth:`is_under` first; a path outside
        the prefix is returned normalized but otherwise unchanged.
        """
        normalized = PathMapper.normalize(path)
        prefix = PathMapper.ensure_trailing_separator(PathMapper.normalize(group_prefix))
        if prefix and normalized.startswith(prefix):
            return normalized[len(prefix):]
        return normalized

    @staticmethod
    def strip_group(location: Optional[str]) -> str:
        """Drop the group directory from a Dropbox path.

        ``/notes/sub/a.txt`` -> ``sub/a.txt``. This is where a downloaded file
        lands relative to the repository root.
        """
        relative = PathMapper.normalize(location)
        _, separator, rest = relative.partition(SEPARATOR)
        return rest if separator else ""

    @staticmethod
    def compose_remote_path(group_key: str, relative_path: str) -> str:
        """Build the Dropbox upload target ``/<group>/<relative path>``."""
        return (
            SEPARATOR
            + PathMapper.normalize(group_key)
            + SEPARATOR
            + PathMapper.normalize(relative_path)
        )

    @staticmethod
    def matches_extension(name: str, extensions: Iterable[str]) -> bool:
        """Check whether a file name ends with one of the allowed extensions."""
        return any(name.endswith(extension) for extension in extensions)
