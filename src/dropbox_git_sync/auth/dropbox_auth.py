"""Dropbox OAuth token handling."""

import logging
import time
from typing import Dict, Optional

import requests

from ..exceptions import ConfigurationError, RemoteStoreError

logger = logging.getLogger(__name__)

TOKEN_URL = "https://api.dropboxapi.com/oauth2/token"


class DropboxAuth:
    """Handle access tokens for the Dropbox API.

    Works with a long-lived access token, or with a refresh token plus app
    key/secret, in which case short-lived access tokens are fetched and
    renewed on demand.
    """

    def __init__(self, access_token: Optional[str] = None, refresh_token: Optional[str] = None,
                 client_id: Optional[str] = None, client_secret: Optional[str] = None,
                 timeout: int = 60):
        """Initialize Dropbox authentication.

        Args:
            access_token: Access token (optional when a refresh token is given)
            refresh_token: OAuth refresh token
            client_id: Dropbox app key
            client_secret: Dropbox app secret
            timeout: HTTP timeout for the token endpoint, in seconds
        """
        self.refresh_token = refresh_token
        self.client_id = client_id
        self.client_secret = client_secret
        self.timeout = timeout

        self._access_token: Optional[str] = access_token or None
        self._token_expiry: Optional[float] = None  # Unix timestamp, None = no known expiry

        if not self._access_token and not self.can_refresh:
            raise ConfigurationError("Dropbox access token or refresh token credentials required")

    @property
    def can_refresh(self) -> bool:
        """Whether a new access token can be requested."""
        return bool(self.refresh_token and self.client_id and self.client_secret)

    def _is_token_expired(self) -> bool:
        """Check if the access token is missing or expires within 5 minutes."""
        if self._access_token is None:
            return True
        if self._token_expiry is None:
            return False

        buffer_seconds = 300
        return time.time() >= (self._token_expiry - buffer_seconds)

    def refresh(self) -> str:
        """Request a new short-lived access token.

        Returns:
            Access token string

        Raises:
            RemoteStoreError: If no refresh credentials exist or Dropbox rejects them
        """
        if not self.can_refresh:
            raise RemoteStoreError("Dropbox access token expired and no refresh token is configured")

        try:
            response = requests.post(
                TOKEN_URL,
                data={
                    'grant_type': 'refresh_token',
                    'refresh_token': self.refresh_token,
                    'client_id': self.client_id,
                    'client_secret': self.client_secret,
                },
                timeout=self.timeout
            )
        except requests.RequestException as e:
            raise RemoteStoreError(f"Token refresh failed: {e}") from e

        if response.status_code != 200:
            raise RemoteStoreError(f"Token refresh failed: HTTP {response.status_code} {response.text}")

        result = response.json()
        self._access_token = result['access_token']
        expires_in = result.get('expires_in', 14400)
        self._token_expiry = time.time() + expires_in
        logger.info(f"✅ Obtained new Dropbox access token (expires in {expires_in} seconds)")
        return self._access_token

    def get_access_token(self, force_refresh: bool = False) -> str:
        """Get current access token, refreshing it when expired.

        Args:
            force_refresh: Refresh even if the current token seems valid

        Returns:
            Access token string
        """
        if force_refresh or self._is_token_expired():
            if self._access_token is not None and not force_refresh:
                logger.info("🔄 Dropbox access token expired, refreshing...")
            return self.refresh()
        return self._access_token

    def get_auth_headers(self) -> Dict[str, str]:
        """Get authorization headers for API requests."""
        return {"Authorization": f"Bearer {self.get_access_token()}"}

    @classmethod
    def from_credentials(cls, credentials, timeout: int = 60) -> "DropboxAuth":
        """Create authentication from a CredentialsConfig."""
        credentials.validate_dropbox()
        return cls(
            access_token=credentials.dropbox_access_token,
            refresh_token=credentials.dropbox_refresh_token,
            client_id=credentials.dropbox_client_id,
            client_secret=credentials.dropbox_client_secret,
            timeout=timeout
        )
