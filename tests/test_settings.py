"""Tests for configuration loading."""

from pathlib import Path

import pytest
import yaml

from dropbox_git_sync.config.settings import (CredentialsConfig, SyncConfig,
                                              SyncDirection)
from dropbox_git_sync.exceptions import ConfigurationError

VALID_CONFIG = {
    'github': {'remote_url': 'https://github.com/acme/notes.git'},
    'sync': {
        'local_repo_path': 'work/repo',
        'cursor_dir': 'work/cursors',
        'target_file_extensions': ['.md', '.txt'],
        'target_directories': ['/notes', '/journal'],
        'sync_target_dir': 'review',
    },
    'direction': 'forward',
}


def write_yaml(path, data):
    path.write_text(yaml.safe_dump(data), encoding='utf-8')
    return path


class TestSyncConfig:
    """Test the main configuration file."""

    def test_load_valid_config(self, tmp_path):
        config = SyncConfig.from_yaml(write_yaml(tmp_path / "config.yaml", VALID_CONFIG))

        assert config.github.remote_url == 'https://github.com/acme/notes.git'
        assert config.sync.local_repo_path == Path('work/repo')
        assert config.sync.target_directories == ['/notes', '/journal']
        assert config.sync.main_branch == 'main'
        assert config.direction == SyncDirection.FORWARD
        assert config.dropbox.timeout == 60
        assert config.logging.level == 'INFO'

    def test_direction_is_optional(self, tmp_path):
        data = {key: value for key, value in VALID_CONFIG.items() if key != 'direction'}
        config = SyncConfig.from_yaml(write_yaml(tmp_path / "config.yaml", data))
        assert config.direction is None

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError, match="not found"):
            SyncConfig.from_yaml(tmp_path / "missing.yaml")

    def test_malformed_yaml(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("github: [unclosed", encoding='utf-8')
        with pytest.raises(ConfigurationError):
            SyncConfig.from_yaml(path)

    def test_non_mapping(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("- just\n- a list\n", encoding='utf-8')
        with pytest.raises(ConfigurationError, match="mapping"):
            SyncConfig.from_yaml(path)

    @pytest.mark.parametrize("section, key, value", [
        ('sync', 'target_file_extensions', []),
        ('sync', 'target_directories', ['  ']),
        ('sync', 'main_branch', ''),
        ('github', 'remote_url', ' '),
    ])
    def test_invalid_values(self, tmp_path, section, key, value):
        data = {k: dict(v) if isinstance(v, dict) else v for k, v in VALID_CONFIG.items()}
        data[section][key] = value
        with pytest.raises(ConfigurationError, match="Invalid configuration"):
            SyncConfig.from_yaml(write_yaml(tmp_path / "config.yaml", data))

    @pytest.mark.parametrize("message", ["Sync {author}", "Sync {0}", "Sync {count!x}", "   "])
    def test_invalid_commit_message(self, tmp_path, message):
        data = {k: dict(v) if isinstance(v, dict) else v for k, v in VALID_CONFIG.items()}
        data["sync"]["commit_message"] = message
        with pytest.raises(ConfigurationError, match="Invalid configuration"):
            SyncConfig.from_yaml(write_yaml(tmp_path / "config.yaml", data))

    def test_custom_commit_message(self, tmp_path):
        data = {k: dict(v) if isinstance(v, dict) else v for k, v in VALID_CONFIG.items()}
        data["sync"]["commit_message"] = "dropbox({group}): {count} file(s)"

        config = SyncConfig.from_yaml(write_yaml(tmp_path / "config.yaml", data))

        assert config.sync.commit_message.format(count=2, group="/notes") == "dropbox(/notes): 2 file(s)"

    def test_missing_required_field(self, tmp_path):
        data = {k: dict(v) if isinstance(v, dict) else v for k, v in VALID_CONFIG.items()}
        del data['sync']['cursor_dir']
        with pytest.raises(ConfigurationError):
            SyncConfig.from_yaml(write_yaml(tmp_path / "config.yaml", data))

    def test_unknown_direction(self, tmp_path):
        data = dict(VALID_CONFIG, direction='sideways')
        with pytest.raises(ConfigurationError):
            SyncConfig.from_yaml(write_yaml(tmp_path / "config.yaml", data))

    def test_save_and_reload(self, tmp_path):
        config = SyncConfig(**VALID_CONFIG)
        path = tmp_path / "nested" / "config.yaml"

        config.to_yaml(path)

        assert SyncConfig.from_yaml(path) == config


class TestSyncDirection:
    """Test direction parsing."""

    @pytest.mark.parametrize("value, expected", [
        ('forward', SyncDirection.FORWARD),
        ('REVERSE', SyncDirection.REVERSE),
        ('dbx-to-git', SyncDirection.FORWARD),
        (' git-to-dbx ', SyncDirection.REVERSE),
    ])
    def test_from_argument(self, value, expected):
        assert SyncDirection.from_argument(value) == expected

    @pytest.mark.parametrize("value", ['both', '', None])
    def test_unknown_direction(self, value):
        with pytest.raises(ConfigurationError):
            SyncDirection.from_argument(value)


class TestCredentials:
    """Test credentials loading."""

    def test_load_from_file(self, tmp_path):
        path = write_yaml(tmp_path / "credentials.yaml", {
            'dropbox_access_token': 'dbx',
            'github_username': 'alice',
            'github_pat': 'ghp',
        })

        creds = CredentialsConfig.from_yaml(path)

        assert creds.dropbox_access_token == 'dbx'
        assert creds.github_pat == 'ghp'
        creds.validate_dropbox()

    def test_missing_file_falls_back_to_environment(self, tmp_path, monkeypatch):
        monkeypatch.setenv('DROPBOX_REFRESH_TOKEN', 'r')
        monkeypatch.setenv('DROPBOX_CLIENT_ID', 'id')
        monkeypatch.setenv('DROPBOX_CLIENT_SECRET', 'secret')
        monkeypatch.delenv('DROPBOX_ACCESS_TOKEN', raising=False)
        monkeypatch.setenv('GITHUB_PAT', 'ghp')

        creds = CredentialsConfig.from_yaml(tmp_path / "missing.yaml")

        assert creds.has_dropbox_refresh
        assert creds.github_pat == 'ghp'
        creds.validate_dropbox()

    def test_incomplete_dropbox_credentials(self):
        creds = CredentialsConfig(dropbox_refresh_token='r', dropbox_client_id='id')
        assert not creds.has_dropbox_refresh
        with pytest.raises(ConfigurationError):
            creds.validate_dropbox()

    def test_invalid_file(self, tmp_path):
        path = tmp_path / "credentials.yaml"
        path.write_text("- not\n- a mapping\n", encoding='utf-8')
        with pytest.raises(ConfigurationError):
            CredentialsConfig.from_yaml(path)
