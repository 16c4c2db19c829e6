"""Configuration settings and models for the sync application."""

import os
from enum import Enum
from pathlib import Path
from typing import List, Optional, Union

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from ..exceptions import ConfigurationError


class SyncDirection(str, Enum):
    """Direction of a sync run."""
    FORWARD = "forward"  # Dropbox -> Git
    REVERSE = "reverse"  # Git -> Dropbox

    @classmethod
    def from_argument(cls, value: str) -> "SyncDirection":
        """Parse a CLI value, accepting the legacy ``dbx-to-git``/``git-to-dbx`` names."""
        if value is None:
            raise ConfigurationError("direction must not be empty")

        normalized = value.strip().lower()
        aliases = {
            "dbx-to-git": cls.FORWARD,
            "git-to-dbx": cls.REVERSE,
        }
        if normalized in aliases:
            return aliases[normalized]
        try:
            return cls(normalized)
        except ValueError:
            raise ConfigurationError(f"Unknown sync direction: {value}") from None


class DropboxOptions(BaseModel):
    """Dropbox API client options."""
    timeout: int = 60  # seconds
    chunk_size: int = 1024 * 1024  # 1MB download chunks


class GithubOptions(BaseModel):
    """Remote repository settings."""
    remote_url: str

    @field_validator('remote_url')
    @classmethod
    def validate_remote_url(cls, v):
        if not v or not v.strip():
            raise ValueError('github.remote_url is required')
        return v.strip()


class SyncOptions(BaseModel):
    """Synchronization options."""
    local_repo_path: Path
    cursor_dir: Path
    target_file_extensions: List[str]
    target_directories: List[str]
    # Repo subtree mirrored back to Dropbox. "" selects the whole tree,
    # it does not disable reverse sync.
    sync_target_dir: str = ""
    main_branch: str = "main"
    commit_message: str = "Sync {count} change(s) from Dropbox {group}"

    @field_validator('target_file_extensions', 'target_directories')
    @classmethod
    def validate_not_empty(cls, v, info):
        cleaned = [item.strip() for item in v if item and item.strip()]
        if not cleaned:
            raise ValueError(f'{info.field_name} must list at least one entry')
        return cleaned

    @field_validator('main_branch')
    @classmethod
    def validate_main_branch(cls, v):
        if not v or not v.strip():
            raise ValueError('main_branch must not be empty')
        return v.strip()

    @field_validator('commit_message')
    @classmethod
    def validate_commit_message(cls, v):
        # Only {count} and {group} are filled in
        try:
            v.format(count=0, group="/group")
        except (KeyError, IndexError, AttributeError, ValueError) as e:
            raise ValueError(
                f'commit_message may only use {{count}} and {{group}} placeholders: {e!r}'
            ) from e
        if not v.strip():
            raise ValueError('commit_message must not be empty')
        return v


class LoggingOptions(BaseModel):
    """Logging options."""
    level: str = "INFO"
    file: Optional[Path] = Path("logs/sync.log")
    max_file_size: int = 10 * 1024 * 1024  # 10MB
    backup_count: int = 5

    @field_validator('level')
    @classmethod
    def validate_level(cls, v):
        if v.upper() not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f'unknown log level: {v}')
        return v.upper()


class SyncConfig(BaseModel):
    """Main configuration class."""
    github: GithubOptions
    sync: SyncOptions
    dropbox: DropboxOptions = Field(default_factory=DropboxOptions)
    logging: LoggingOptions = Field(default_factory=LoggingOptions)
    direction: Optional[SyncDirection] = None

    @classmethod
    def from_yaml(cls, config_path: Union[str, Path]) -> "SyncConfig":
        """Load configuration from YAML file.

        Raises:
            ConfigurationError: If the file is missing, unreadable or invalid
        """
        config_path = Path(config_path)
        if not config_path.exists():
            raise ConfigurationError(f"Configuration file not found: {config_path}")

        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                config_data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Failed to read config file {config_path}: {e}") from e

        if not isinstance(config_data, dict):
            raise ConfigurationError(f"Config file {config_path} must contain a mapping")

        try:
            return cls(**config_data)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration in {config_path}: {e}") from e

    def to_yaml(self, config_path: Union[str, Path]) -> None:
        """Save configuration to YAML file."""
        config_path = Path(config_path)
        config_path.parent.mkdir(parents=True, exist_ok=True)

        with open(config_path, 'w', encoding='utf-8') as f:
            yaml.dump(self.model_dump(mode='json', exclude_none=True), f,
                      default_flow_style=False, indent=2, sort_keys=False)


class CredentialsConfig(BaseModel):
    """Credentials configuration (stored separately for security)."""
    dropbox_access_token: Optional[str] = None
    dropbox_refresh_token: Optional[str] = None
    dropbox_client_id: Optional[str] = None
    dropbox_client_secret: Optional[str] = None

    github_username: Optional[str] = None
    github_pat: Optional[str] = None

    @property
    def has_dropbox_refresh(self) -> bool:
        return bool(self.dropbox_refresh_token and self.dropbox_client_id
                    and self.dropbox_client_secret)

    def validate_dropbox(self) -> None:
        """Make sure Dropbox can be reached with these credentials.

        Raises:
            ConfigurationError: If neither an access token nor a full
                refresh-token set is configured
        """
        if not self.dropbox_access_token and not self.has_dropbox_refresh:
            raise ConfigurationError(
                "Dropbox credentials missing: set dropbox_access_token or "
                "dropbox_refresh_token, dropbox_client_id and dropbox_client_secret"
            )

    @classmethod
    def from_yaml(cls, credentials_path: Union[str, Path]) -> "CredentialsConfig":
        """Load credentials from YAML file, falling back to the environment."""
        credentials_path = Path(credentials_path)
        if not credentials_path.exists():
            return cls.from_env()

        try:
            with open(credentials_path, 'r', encoding='utf-8') as f:
                creds_data = yaml.safe_load(f) or {}
            return cls(**creds_data)
        except (OSError, yaml.YAMLError, TypeError, ValidationError) as e:
            raise ConfigurationError(f"Invalid credentials file {credentials_path}: {e}") from e

    @classmethod
    def from_env(cls) -> "CredentialsConfig":
        """Load credentials from environment variables."""
        return cls(
            dropbox_access_token=os.getenv('DROPBOX_ACCESS_TOKEN'),
            dropbox_refresh_token=os.getenv('DROPBOX_REFRESH_TOKEN'),
            dropbox_client_id=os.getenv('DROPBOX_CLIENT_ID'),
            dropbox_client_secret=os.getenv('DROPBOX_CLIENT_SECRET'),
            github_username=os.getenv('GITHUB_USERNAME'),
            github_pat=os.getenv('GITHUB_PAT')
        )
