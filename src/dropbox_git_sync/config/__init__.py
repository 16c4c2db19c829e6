"""Configuration management for the Dropbox/Git sync application."""

from .settings import CredentialsConfig, SyncConfig, SyncDirection, SyncOptions

__all__ = ["CredentialsConfig", "SyncConfig", "SyncDirection", "SyncOptions"]
