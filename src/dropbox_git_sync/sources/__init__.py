"""Dropbox file store access."""

from .dropbox_client import DropboxClient

__all__ = ["DropboxClient"]
