"""
Token Cache
===========
Process-local OAuth access token caching for storage providers.

Each provider gets one TokenCache holding its current access token and
expiry. A cached token is returned without any network call until it
expires; after that the next caller refreshes it through the provider's
token endpoint.

There is intentionally no lock: concurrent cold callers may each refresh,
which providers treat as harmless. Nothing is persisted, so a process
restart always starts cold.
"""

import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Dict, Optional, Tuple

import requests

from ..config.constants import (
    DROPBOX_TOKEN_URL,
    GOOGLE_DRIVE_SCOPE,
    GOOGLE_TOKEN_URI,
    STORAGE_PROVIDER_DROPBOX,
    STORAGE_PROVIDER_GOOGLE_DRIVE,
    TOKEN_EXPIRY_BUFFER_SECONDS,
    TOKEN_REQUEST_TIMEOUT,
)
from ..config.settings import DropboxSettings, GoogleDriveSettings, load_settings
from ..errors import AuthenticationError

# Refreshers return (access_token, lifetime_seconds)
TokenRefresher = Callable[[], Tuple[str, float]]


@dataclass
class TokenCacheEntry:
    """A cached access token and the clock time at which it stops being used."""

    access_token: str
    expires_at: float


class TokenCache:
    """
    Holds one provider's access token and refreshes it when absent or expired.

    Usage:
        cache = TokenCache("dropbox", DropboxTokenRefresher(key, secret, token))
        access_token = cache.get_access_token()

    The clock and refresher are injected so expiry can be simulated in tests.
    """

    def __init__(
        self,
        provider: str,
        refresher: TokenRefresher,
        clock: Callable[[], float] = time.time,
        expiry_buffer: float = TOKEN_EXPIRY_BUFFER_SECONDS,
    ):
        self.provider = provider
        self._refresher = refresher
        self._clock = clock
        self._expiry_buffer = expiry_buffer
        self._entry: Optional[TokenCacheEntry] = None

    @property
    def entry(self) -> Optional[TokenCacheEntry]:
        return self._entry

    def get_access_token(self) -> str:
        """
        Return a valid access token, refreshing it if needed.

        Raises:
            AuthenticationError: If the refresh fails (nothing is cached)
        """
        entry = self._entry
        if entry is not None and self._clock() < entry.expires_at:
            return entry.access_token

        print(f"Refreshing {self.provider} access token...")
        access_token, lifetime = self._refresher()

        expires_at = self._clock() + max(lifetime - self._expiry_buffer, 0)
        self._entry = TokenCacheEntry(access_token=access_token, expires_at=expires_at)

        print(f"Obtained fresh {self.provider} token (valid {int(lifetime)}s)")
        return access_token

    def reset(self) -> None:
        """Drop the cached entry."""
        self._entry = None


class DropboxTokenRefresher:
    """Exchanges a long-lived Dropbox refresh token for a short-lived access token."""

    def __init__(
        self,
        app_key: str,
        app_secret: str,
        refresh_token: str,
        session: Optional[requests.Session] = None,
        token_url: str = DROPBOX_TOKEN_URL,
    ):
        self.app_key = app_key
        self.app_secret = app_secret
        self.refresh_token = refresh_token
        self.session = session or requests.Session()
        self.token_url = token_url

    @classmethod
    def from_settings(cls, settings: DropboxSettings, session: Optional[requests.Session] = None):
        return cls(settings.app_key, settings.app_secret, settings.refresh_token, session=session)

    def __call__(self) -> Tuple[str, float]:
        data = {
            'grant_type': 'refresh_token',
            'refresh_token': self.refresh_token,
            'client_id': self.app_key,
            'client_secret': self.app_secret,
        }

        try:
            response = self.session.post(self.token_url, data=data, timeout=TOKEN_REQUEST_TIMEOUT)
        except requests.RequestException as e:
            raise AuthenticationError(
                f"Dropbox token request failed: {e}", provider=STORAGE_PROVIDER_DROPBOX
            )
        finally:
            data.clear()  # Clear credentials from memory

        if response.status_code >= 400:
            raise AuthenticationError(
                f"Dropbox token refresh failed ({response.status_code}): {response.text}",
                provider=STORAGE_PROVIDER_DROPBOX,
            )

        try:
            token_data = response.json()
        except ValueError:
            raise AuthenticationError(
                "Dropbox token endpoint returned a non-JSON body",
                provider=STORAGE_PROVIDER_DROPBOX,
            )

        access_token = token_data.get('access_token') if isinstance(token_data, dict) else None
        expires_in = token_data.get('expires_in') if isinstance(token_data, dict) else None

        if not access_token:
            raise AuthenticationError(
                "No access token in Dropbox token response", provider=STORAGE_PROVIDER_DROPBOX
            )

        try:
            lifetime = float(expires_in)
        except (TypeError, ValueError):
            raise AuthenticationError(
                f"Invalid expires_in in Dropbox token response: {expires_in!r}",
                provider=STORAGE_PROVIDER_DROPBOX,
            )

        return access_token, lifetime


# Lazy import Google libraries
_google_imported = False
_service_account = None
_Request = None
_RefreshError = None


def _import_google_auth():
    """Lazy import google-auth only when a Drive token is needed"""
    global _google_imported, _service_account, _Request, _RefreshError

    if _google_imported:
        return

    try:
        from google.oauth2 import service_account
        from google.auth.transport.requests import Request
        from google.auth.exceptions import RefreshError

        _service_account = service_account
        _Request = Request
        _RefreshError = RefreshError
        _google_imported = True

    except ImportError:
        raise ImportError(
            "Google auth libraries not installed. "
            "Run: pip install google-auth google-api-python-client"
        )


class ServiceAccountTokenRefresher:
    """Obtains Drive access tokens through the service-account JWT flow."""

    def __init__(
        self,
        service_account_email: str,
        private_key: str,
        subject: Optional[str] = None,
        scopes: Optional[list] = None,
        session: Optional[requests.Session] = None,
        token_uri: str = GOOGLE_TOKEN_URI,
    ):
        self.service_account_email = service_account_email
        self.private_key = private_key
        self.subject = subject
        self.scopes = scopes or [GOOGLE_DRIVE_SCOPE]
        self.session = session or requests.Session()
        self.token_uri = token_uri

    @classmethod
    def from_settings(cls, settings: GoogleDriveSettings, session: Optional[requests.Session] = None):
        return cls(
            settings.service_account_email,
            settings.private_key,
            subject=settings.impersonate_subject,
            session=session,
        )

    def __call__(self) -> Tuple[str, float]:
        _import_google_auth()

        info = {
            'type': 'service_account',
            'client_email': self.service_account_email,
            'private_key': self.private_key,
            'token_uri': self.token_uri,
        }

        try:
            credentials = _service_account.Credentials.from_service_account_info(
                info, scopes=self.scopes, subject=self.subject
            )
        except ValueError as e:
            raise AuthenticationError(
                f"Invalid Google service account key: {e}", provider=STORAGE_PROVIDER_GOOGLE_DRIVE
            )

        try:
            credentials.refresh(_Request(self.session))
        except _RefreshError as e:
            raise AuthenticationError(
                f"Google token refresh failed: {e}", provider=STORAGE_PROVIDER_GOOGLE_DRIVE
            )

        if not credentials.token:
            raise AuthenticationError(
                "No access token in Google token response", provider=STORAGE_PROVIDER_GOOGLE_DRIVE
            )

        # google-auth reports expiry as naive UTC
        if credentials.expiry:
            now = datetime.now(timezone.utc).replace(tzinfo=None)
            lifetime = (credentials.expiry - now).total_seconds()
        else:
            lifetime = 3600.0

        return credentials.token, lifetime


# =============================================================================
# PROCESS-WIDE REGISTRY
# =============================================================================

_token_caches: Dict[str, TokenCache] = {}


def build_refresher(provider: str, settings) -> TokenRefresher:
    """Create the token refresher matching a provider's settings."""
    if provider == STORAGE_PROVIDER_DROPBOX:
        return DropboxTokenRefresher.from_settings(settings)
    if provider == STORAGE_PROVIDER_GOOGLE_DRIVE:
        return ServiceAccountTokenRefresher.from_settings(settings)
    raise ValueError(f"Unknown storage provider: '{provider}'")


def get_token_cache(provider: str, settings=None) -> TokenCache:
    """
    Get the process-wide token cache for a provider, creating it on first use.

    Args:
        provider: Provider type ('dropbox', 'gdrive')
        settings: Provider settings (loaded from the environment if None)
    """
    cache = _token_caches.get(provider)
    if cache is None:
        if settings is None:
            settings = load_settings(provider)
        cache = TokenCache(provider, build_refresher(provider, settings))
        _token_caches[provider] = cache
    return cache


def get_access_token(provider: str, settings=None) -> str:
    """Get a valid access token for a provider."""
    return get_token_cache(provider, settings).get_access_token()


def _reset_token_caches() -> None:
    """Forget every cached token. Test hook only."""
    _token_caches.clear()
