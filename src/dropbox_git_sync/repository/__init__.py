"""Local Git repository access."""

from .git_client import GitRepoClient

__all__ = ["GitRepoClient"]
