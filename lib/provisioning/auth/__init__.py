"""
Auth module - Provider token caching and admin request verification.
"""

from .token_cache import (
    TokenCache,
    TokenCacheEntry,
    DropboxTokenRefresher,
    ServiceAccountTokenRefresher,
    get_token_cache,
    get_access_token,
)

from .admin import (
    extract_bearer_token,
    verify_admin_request,
)

__all__ = [
    "TokenCache",
    "TokenCacheEntry",
    "DropboxTokenRefresher",
    "ServiceAccountTokenRefresher",
    "get_token_cache",
    "get_access_token",
    "extract_bearer_token",
    "verify_admin_request",
]
