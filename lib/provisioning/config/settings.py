"""
Provider Settings
=================
Environment-backed settings for each storage provider.

Loading fails fast: every missing required variable is collected and
reported in a single ConfigurationError.
"""

import os
from dataclasses import dataclass, asdict
from typing import Dict, Any, List, Mapping, Optional

from .constants import STORAGE_PROVIDER_DROPBOX, STORAGE_PROVIDER_GOOGLE_DRIVE
from .credentials import read_secret, mask_credentials
from ..errors import ConfigurationError


def _require(names: List[str], env: Mapping[str, str], provider_name: str) -> Dict[str, str]:
    """Resolve required variables, reporting all missing ones at once."""
    values = {}
    missing = []

    for name in names:
        value = read_secret(name, env)
        if value:
            values[name] = value
        else:
            missing.append(name)

    if missing:
        raise ConfigurationError(
            f"Missing required {provider_name} environment variables: {', '.join(missing)}",
            missing=missing,
        )

    return values


@dataclass
class DropboxSettings:
    """Dropbox app credentials and project placement."""

    app_key: str
    app_secret: str
    refresh_token: str
    team_member_id: Optional[str] = None
    projects_root: str = "/"

    REQUIRED = ["DROPBOX_APP_KEY", "DROPBOX_APP_SECRET", "DROPBOX_REFRESH_TOKEN"]

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "DropboxSettings":
        env = os.environ if environ is None else environ
        values = _require(cls.REQUIRED, env, "Dropbox")

        return cls(
            app_key=values["DROPBOX_APP_KEY"],
            app_secret=values["DROPBOX_APP_SECRET"],
            refresh_token=values["DROPBOX_REFRESH_TOKEN"],
            team_member_id=env.get("DROPBOX_TEAM_MEMBER_ID") or None,
            projects_root=env.get("DROPBOX_PROJECTS_ROOT") or "/",
        )

    def masked(self) -> Dict[str, Any]:
        return mask_credentials(asdict(self))


@dataclass
class GoogleDriveSettings:
    """Google Drive service-account credentials and root folder."""

    service_account_email: str
    private_key: str
    root_folder_id: str
    impersonate_subject: Optional[str] = None

    REQUIRED = [
        "GDRIVE_SERVICE_ACCOUNT_EMAIL",
        "GDRIVE_SERVICE_ACCOUNT_PRIVATE_KEY",
        "GDRIVE_ROOT_FOLDER_ID",
    ]

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "GoogleDriveSettings":
        env = os.environ if environ is None else environ
        values = _require(cls.REQUIRED, env, "Google Drive")

        # Keys pasted into env dashboards usually carry escaped newlines
        private_key = values["GDRIVE_SERVICE_ACCOUNT_PRIVATE_KEY"].replace("\\n", "\n")

        return cls(
            service_account_email=values["GDRIVE_SERVICE_ACCOUNT_EMAIL"],
            private_key=private_key,
            root_folder_id=values["GDRIVE_ROOT_FOLDER_ID"],
            impersonate_subject=env.get("GDRIVE_IMPERSONATE_SUBJECT") or None,
        )

    def masked(self) -> Dict[str, Any]:
        return mask_credentials(asdict(self))


_SETTINGS_CLASSES = {
    STORAGE_PROVIDER_DROPBOX: DropboxSettings,
    STORAGE_PROVIDER_GOOGLE_DRIVE: GoogleDriveSettings,
}


def load_settings(provider_type: str, environ: Optional[Mapping[str, str]] = None):
    """
    Load settings for a provider from the environment.

    Raises:
        ValueError: If provider type unknown
        ConfigurationError: If required variables are missing
    """
    settings_class = _SETTINGS_CLASSES.get(provider_type)
    if settings_class is None:
        raise ValueError(f"Unknown storage provider: '{provider_type}'")

    settings = settings_class.from_env(environ)
    print(f"Loaded {provider_type} settings: {settings.masked()}")
    return settings
