"""
Configuration module - Settings, credentials and constants management.
"""

from .credentials import (
    get_encryption_key,
    decrypt_credential,
    read_secret,
    mask_credentials,
    generate_fernet_key,
)

from .settings import (
    DropboxSettings,
    GoogleDriveSettings,
    load_settings,
)

from .constants import (
    PROVISIONING_VERSION,
    PROJECT_SUBFOLDERS,
    EXPORT_FOLDER_NAME,
    MAX_PROJECT_CODE_INDEX,
    # Provider identifiers
    STORAGE_PROVIDER_DROPBOX,
    STORAGE_PROVIDER_GOOGLE_DRIVE,
    DEFAULT_STORAGE_PROVIDER,
    SUPPORTED_STORAGE_PROVIDERS,
    # API endpoints
    DROPBOX_TOKEN_URL,
    GOOGLE_TOKEN_URI,
)

__all__ = [
    # Credentials
    "get_encryption_key",
    "decrypt_credential",
    "read_secret",
    "mask_credentials",
    "generate_fernet_key",
    # Settings
    "DropboxSettings",
    "GoogleDriveSettings",
    "load_settings",
    # Constants
    "PROVISIONING_VERSION",
    "PROJECT_SUBFOLDERS",
    "EXPORT_FOLDER_NAME",
    "MAX_PROJECT_CODE_INDEX",
    # Provider identifiers
    "STORAGE_PROVIDER_DROPBOX",
    "STORAGE_PROVIDER_GOOGLE_DRIVE",
    "DEFAULT_STORAGE_PROVIDER",
    "SUPPORTED_STORAGE_PROVIDERS",
    # API endpoints
    "DROPBOX_TOKEN_URL",
    "GOOGLE_TOKEN_URI",
]
