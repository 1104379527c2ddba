"""
VX Provisioning Core
====================
Project storage provisioning for event projects.

Creates a fixed folder tree per project on Dropbox or Google Drive, and
manages a public read-only "export" link on each project's delivery folder.

Usage in functions:
    from provisioning import handle_request

    def main(event, context):
        return handle_request(event, context)
"""

from .config import (
    PROVISIONING_VERSION,
    PROJECT_SUBFOLDERS,
    STORAGE_PROVIDER_DROPBOX,
    STORAGE_PROVIDER_GOOGLE_DRIVE,
    DEFAULT_STORAGE_PROVIDER,
    DropboxSettings,
    GoogleDriveSettings,
    load_settings,
    mask_credentials,
    generate_fernet_key,
)

from .errors import (
    ProvisioningError,
    AuthenticationError,
    ConfigurationError,
    NotFoundError,
    PreconditionError,
    InvalidRequestError,
    CodeExhaustedError,
    ProviderConflictError,
    ProviderError,
)

from .auth import (
    TokenCache,
    TokenCacheEntry,
    get_access_token,
    verify_admin_request,
)

from .providers import (
    BaseStorageProvider,
    ProjectTree,
    ExportLink,
    StorageFactory,
    DropboxProvider,
    GoogleDriveProvider,
    is_already_exists_error,
)

from .projects import (
    make_project_code,
    allocate_project_code,
    BaseProjectStore,
    FirestoreProjectStore,
    ProjectProvisioner,
)

from .api import handle_request

__version__ = PROVISIONING_VERSION

__all__ = [
    # Config
    "PROVISIONING_VERSION",
    "PROJECT_SUBFOLDERS",
    "STORAGE_PROVIDER_DROPBOX",
    "STORAGE_PROVIDER_GOOGLE_DRIVE",
    "DEFAULT_STORAGE_PROVIDER",
    "DropboxSettings",
    "GoogleDriveSettings",
    "load_settings",
    "mask_credentials",
    "generate_fernet_key",
    # Errors
    "ProvisioningError",
    "AuthenticationError",
    "ConfigurationError",
    "NotFoundError",
    "PreconditionError",
    "InvalidRequestError",
    "CodeExhaustedError",
    "ProviderConflictError",
    "ProviderError",
    # Auth
    "TokenCache",
    "TokenCacheEntry",
    "get_access_token",
    "verify_admin_request",
    # Providers
    "BaseStorageProvider",
    "ProjectTree",
    "ExportLink",
    "StorageFactory",
    "DropboxProvider",
    "GoogleDriveProvider",
    "is_already_exists_error",
    # Projects
    "make_project_code",
    "allocate_project_code",
    "BaseProjectStore",
    "FirestoreProjectStore",
    "ProjectProvisioner",
    # API
    "handle_request",
]
