"""
Storage Factory
===============
Factory for creating storage provider instances from a provider type.

The provider type is always the value stored on the project record
('dropbox' or 'gdrive'), so callers select a variant without looking at
provider-specific fields.
"""

from typing import Optional, Type

from .base import BaseStorageProvider
from .dropbox_provider import DropboxProvider
from .google_drive_provider import GoogleDriveProvider

from ..auth.token_cache import get_token_cache
from ..config.constants import (
    STORAGE_PROVIDER_DROPBOX,
    STORAGE_PROVIDER_GOOGLE_DRIVE,
)
from ..config.settings import load_settings
from ..errors import InvalidRequestError


class StorageFactory:
    """
    Factory for creating storage provider instances.

    The factory handles:
    1. Provider type validation
    2. Settings loading from the environment
    3. Wiring the provider to its process-wide token cache

    Usage:
        provider = StorageFactory.create("dropbox")
        tree = provider.create_project_tree("VX001_boda-ana_2025-06-15")
    """

    # Registered provider classes
    _providers = {
        STORAGE_PROVIDER_DROPBOX: DropboxProvider,
        STORAGE_PROVIDER_GOOGLE_DRIVE: GoogleDriveProvider,
    }

    @classmethod
    def get_provider_class(cls, provider_type: str) -> Type[BaseStorageProvider]:
        """
        Look up the provider class for a type.

        Raises:
            InvalidRequestError: If provider type unknown
        """
        normalized = (provider_type or "").lower().strip()

        if normalized not in cls._providers:
            supported = ", ".join(cls._providers.keys())
            raise InvalidRequestError(
                f"Unknown storage provider: '{provider_type}'. "
                f"Supported: {supported}"
            )

        return cls._providers[normalized]

    @classmethod
    def create(cls, provider_type: str, settings=None) -> BaseStorageProvider:
        """
        Create a storage provider instance.

        Args:
            provider_type: Provider type ('dropbox', 'gdrive')
            settings: Provider settings (loaded from the environment if None)

        Returns:
            Configured storage provider instance

        Raises:
            InvalidRequestError: If provider type unknown
            ConfigurationError: If required settings are missing
        """
        provider_class = cls.get_provider_class(provider_type)
        provider_type = provider_class.PROVIDER_TYPE

        if settings is None:
            settings = load_settings(provider_type)

        token_cache = get_token_cache(provider_type, settings)
        return provider_class.from_settings(settings, token_cache)

    @classmethod
    def get_supported_providers(cls) -> list:
        """Get list of supported provider types."""
        return list(cls._providers.keys())

    @classmethod
    def is_provider_supported(cls, provider_type: Optional[str]) -> bool:
        """Check if a provider type is supported."""
        return (provider_type or "").lower().strip() in cls._providers
