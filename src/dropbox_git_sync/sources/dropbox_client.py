"""Dropbox API v2 operations used by the sync engine."""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple

import requests

from ..auth.dropbox_auth import DropboxAuth
from ..exceptions import RemoteStoreError
from ..sync.models import StoreEntry

logger = logging.getLogger(__name__)

API_URL = "https://api.dropboxapi.com/2"
CONTENT_URL = "https://content.dropboxapi.com/2"


class DropboxClient:
    """Folder listing, download and upload against Dropbox."""

    def __init__(self, auth: DropboxAuth, timeout: int = 60, chunk_size: int = 1024 * 1024):
        """Initialize with Dropbox authentication.

        Args:
            auth: Token provider
            timeout: HTTP timeout in seconds
            chunk_size: Download chunk size in bytes
        """
        self.auth = auth
        self.timeout = timeout
        self.chunk_size = chunk_size
        self.session = requests.Session()

    def _rpc(self, endpoint: str, payload: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        """Call a JSON endpoint and return the decoded body."""
        try:
            response = self.session.post(
                f"{API_URL}/{endpoint}",
                headers=self.auth.get_auth_headers(),
                json=payload,
                timeout=self.timeout
            )
        except requests.RequestException as e:
            raise RemoteStoreError(f"Dropbox {endpoint} failed: {e}") from e

        if response.status_code != 200:
            raise RemoteStoreError(f"Dropbox {endpoint} failed: HTTP {response.status_code} {response.text}")
        return response.json()

    @staticmethod
    def _to_entry(metadata: Dict[str, Any]) -> StoreEntry:
        return StoreEntry(
            path=metadata.get('path_display') or metadata.get('path_lower', ''),
            name=metadata.get('name', ''),
            tag=metadata.get('.tag', 'file'),
            client_modified=metadata.get('client_modified'),
            size=metadata.get('size', 0)
        )

    def list_groups(self) -> List[str]:
        """List the folders at the Dropbox root.

        Returns:
            Folder paths as displayed by Dropbox (``/Notes``)
        """
        logger.debug("Fetching top-level directories from Dropbox")
        entries, _ = self._list_folder("", recursive=False)
        return [entry.path for entry in entries if entry.is_folder]

    def list_all(self, group: str) -> Tuple[List[StoreEntry], str]:
        """Recursively list everything below a group directory.

        Returns:
            All entries and the cursor at the end of the listing
        """
        logger.debug(f"Fetching all files for directory: {group}")
        return self._list_folder(group, recursive=True)

    def _list_folder(self, path: str, recursive: bool) -> Tuple[List[StoreEntry], str]:
        data = self._rpc("files/list_folder", {'path': path, 'recursive': recursive})
        entries = [self._to_entry(item) for item in data.get('entries', [])]

        while data.get('has_more'):
            data = self._rpc("files/list_folder/continue", {'cursor': data['cursor']})
            entries.extend(self._to_entry(item) for item in data.get('entries', []))

        return entries, data['cursor']

    def list_delta(self, cursor: str) -> Tuple[List[StoreEntry], bool, str]:
        """Fetch one page of changes since a cursor.

        Returns:
            Entries of the page, whether more pages follow, and the next cursor
        """
        data = self._rpc("files/list_folder/continue", {'cursor': cursor})
        entries = [self._to_entry(item) for item in data.get('entries', [])]
        return entries, bool(data.get('has_more')), data['cursor']

    def download(self, remote_path: str) -> Iterator[bytes]:
        """Stream the content of a Dropbox file."""
        headers = self.auth.get_auth_headers()
        headers['Dropbox-API-Arg'] = json.dumps({'path': remote_path})

        try:
            response = self.session.post(
                f"{CONTENT_URL}/files/download",
                headers=headers,
                stream=True,
                timeout=self.timeout
            )
        except requests.RequestException as e:
            raise RemoteStoreError(f"Downloading {remote_path} failed: {e}") from e

        if response.status_code != 200:
            response.close()
            raise RemoteStoreError(f"Downloading {remote_path} failed: HTTP {response.status_code}")

        return self._iter_content(response, remote_path)

    def _iter_content(self, response: requests.Response, remote_path: str) -> Iterator[bytes]:
        try:
            for chunk in response.iter_content(chunk_size=self.chunk_size):
                if chunk:
                    yield chunk
        except requests.RequestException as e:
            raise RemoteStoreError(f"Downloading {remote_path} failed: {e}") from e
        finally:
            response.close()

    def upload(self, local_file: Path, remote_path: str, last_modified: datetime) -> None:
        """Upload a local file, overwriting the Dropbox copy.

        An expired or revoked token (HTTP 401) triggers one credential
        refresh and one retry.

        Raises:
            RemoteStoreError: If the upload fails
        """
        local_file = Path(local_file)
        if not local_file.is_file():
            raise RemoteStoreError(f"Local file does not exist: {local_file}")

        response = self._upload_once(local_file, remote_path, last_modified)
        if response.status_code == 401 and self.auth.can_refresh:
            logger.info("Dropbox upload was rejected once. Trying to refresh credential...")
            self.auth.get_access_token(force_refresh=True)
            response = self._upload_once(local_file, remote_path, last_modified)

        if response.status_code != 200:
            raise RemoteStoreError(
                f"Uploading {local_file} to {remote_path} failed: HTTP {response.status_code} {response.text}"
            )
        logger.info(f"Uploaded {local_file} to {remote_path}")

    def _upload_once(self, local_file: Path, remote_path: str, last_modified: datetime) -> requests.Response:
        client_modified = last_modified.astimezone(timezone.utc).strftime('%Y-%m-%dT%H:%M:%SZ')
        headers = self.auth.get_auth_headers()
        headers['Content-Type'] = 'application/octet-stream'
        headers['Dropbox-API-Arg'] = json.dumps({
            'path': remote_path,
            'mode': 'overwrite',
            'client_modified': client_modified,
            'mute': False,
        })

        try:
            with open(local_file, 'rb') as f:
                return self.session.post(
                    f"{CONTENT_URL}/files/upload",
                    headers=headers,
                    data=f,
                    timeout=self.timeout
                )
        except OSError as e:
            raise RemoteStoreError(f"Failed to read local file for upload: {local_file}") from e
        except requests.RequestException as e:
            raise RemoteStoreError(f"Uploading {local_file} to {remote_path} failed: {e}") from e

    def test_connection(self) -> bool:
        """Check the credentials with a cheap account lookup."""
        try:
            data = self._rpc("users/get_current_account", None)
        except RemoteStoreError as e:
            logger.error(f"Dropbox connection test failed: {e}")
            return False
        logger.info(f"Connected to Dropbox as {data.get('email', 'unknown')}")
        return True
