"""
VX Provisioning Core - Constants and Configuration
==================================================
Shared constants for project storage provisioning: provider identifiers,
the project folder layout, API endpoints and token handling defaults.
"""

from typing import List, Tuple

# Version identifier for VX Provisioning Core
PROVISIONING_VERSION = "1.0.0"

# =============================================================================
# PROVIDER IDENTIFIERS
# =============================================================================

STORAGE_PROVIDER_DROPBOX: str = "dropbox"
STORAGE_PROVIDER_GOOGLE_DRIVE: str = "gdrive"

# Provider used when a create request does not name one
DEFAULT_STORAGE_PROVIDER: str = STORAGE_PROVIDER_GOOGLE_DRIVE

SUPPORTED_STORAGE_PROVIDERS: Tuple[str, ...] = (
    STORAGE_PROVIDER_DROPBOX,
    STORAGE_PROVIDER_GOOGLE_DRIVE,
)

# =============================================================================
# PROJECT LAYOUT
# =============================================================================

# Identical for both providers so projects are comparable regardless of
# where they live. Nested entries create their parents.
PROJECT_SUBFOLDERS: List[str] = [
    'RAW/IMAGEN',
    'RAW/VIDEO',
    'SELECTED/IMAGEN',
    'SELECTED/VIDEO',
    'EDITED/IMAGEN',
    'EDITED/VIDEO',
    'EXPORT/IMAGEN',
    'EXPORT/VIDEO',
    'DOCS',
    'ARCHIVE',
]

# Client-facing delivery folder inside every project tree
EXPORT_FOLDER_NAME: str = "EXPORT"

# =============================================================================
# PROJECT CODES
# =============================================================================

PROJECT_CODE_PREFIX: str = "VX"

# Upper bound for the disambiguating index (usability safeguard)
MAX_PROJECT_CODE_INDEX: int = 999

# Maximum slug length inside a project code
MAX_SLUG_LENGTH: int = 40

# =============================================================================
# AUDIT ACTIONS
# =============================================================================

AUDIT_ACTION_CREATE: str = "create"
AUDIT_ACTION_TREE_CREATED: str = "{provider}_tree_created"
AUDIT_ACTION_EXPORT_LINK_READY: str = "export_link_ready"
AUDIT_ACTION_EXPORT_LINK_REVOKED: str = "export_link_revoked"

# =============================================================================
# TOKEN HANDLING
# =============================================================================

# Seconds subtracted from provider-reported token lifetimes
TOKEN_EXPIRY_BUFFER_SECONDS: int = 60

# Timeout for token endpoint calls (seconds)
TOKEN_REQUEST_TIMEOUT: int = 30

# Timeout for Dropbox API calls (seconds)
DROPBOX_API_TIMEOUT: int = 100

# =============================================================================
# API ENDPOINTS
# =============================================================================

# Dropbox API endpoints
DROPBOX_TOKEN_URL: str = "https://api.dropboxapi.com/oauth2/token"

# Google endpoints and scopes
GOOGLE_TOKEN_URI: str = "https://oauth2.googleapis.com/token"
GOOGLE_DRIVE_SCOPE: str = "https://www.googleapis.com/auth/drive"
GOOGLE_FOLDER_MIME_TYPE: str = "application/vnd.google-apps.folder"

# =============================================================================
# PERSISTENCE
# =============================================================================

PROJECTS_COLLECTION: str = "projects"
