"""Authentication for the Dropbox API."""

from .dropbox_auth import DropboxAuth

__all__ = ["DropboxAuth"]
