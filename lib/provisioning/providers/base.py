"""
VX Provisioning Core - Base Storage Provider
============================================
Abstract base class for the storage providers that host project trees.

Every provider implements the same three operations:
- create_project_tree: idempotently create the fixed project folder layout
- get_or_create_export_link: return the active public link, creating one if needed
- revoke_export_link: remove public access (no-op when nothing is shared)

Providers also own the shape of their storage record, so callers never
branch on provider-specific fields.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Any, Optional


@dataclass(frozen=True)
class ProjectTree:
    """Handles returned by create_project_tree."""

    root: str
    export_ref: str


@dataclass(frozen=True)
class ExportLink:
    """A public, read-only link to a project's export folder."""

    url: str
    id: Optional[str] = None


class BaseStorageProvider(ABC):
    """
    Abstract base class for cloud storage providers.

    Subclasses set the storage record field names:
        ROOT_FIELD: field holding the root folder reference
        EXPORT_REF_FIELD: field holding the export folder reference
        LINK_ID_FIELD: field holding the export link id (None if not persisted)
    """

    PROVIDER_TYPE: str = ""
    PROVIDER_NAME: str = ""

    ROOT_FIELD: str = ""
    EXPORT_REF_FIELD: str = ""
    LINK_ID_FIELD: Optional[str] = None

    @abstractmethod
    def create_project_tree(self, project_code: str) -> ProjectTree:
        """
        Create the project root and every subfolder beneath it.

        Must be idempotent: folders that already exist are reused, so a
        second call for the same code neither fails nor duplicates folders.

        Args:
            project_code: Project code, used as the root folder name

        Returns:
            ProjectTree with the root handle and the export folder handle

        Raises:
            ProviderError: On any non-conflict provider failure
        """
        pass

    @abstractmethod
    def get_or_create_export_link(self, folder_ref: str) -> ExportLink:
        """
        Return the export folder's existing public link, or create one.

        A new link is never created while one is active, so previously
        distributed URLs keep working.

        Args:
            folder_ref: Provider-specific export folder handle

        Returns:
            ExportLink with the URL (and id where the provider needs one)

        Raises:
            NotFoundError: If the folder does not exist
            ProviderError: On any other provider failure
        """
        pass

    @abstractmethod
    def revoke_export_link(self, folder_ref: str, link_id: Optional[str] = None) -> None:
        """
        Remove public access from the export folder.

        Safe to call repeatedly: revoking when nothing is shared is a no-op.

        Args:
            folder_ref: Provider-specific export folder handle
            link_id: Previously stored link id, for providers that keep one
        """
        pass

    def get_provider_type(self) -> str:
        """Get provider type identifier ('dropbox', 'gdrive')."""
        return self.PROVIDER_TYPE

    def get_provider_name(self) -> str:
        """Get human-readable provider name."""
        return self.PROVIDER_NAME

    # -------------------------------------------------------------------------
    # Storage record helpers
    # -------------------------------------------------------------------------

    @classmethod
    def storage_from_tree(cls, tree: ProjectTree) -> Dict[str, Any]:
        """Build the storage record for a freshly provisioned tree."""
        return {
            'provider': cls.PROVIDER_TYPE,
            cls.ROOT_FIELD: tree.root,
            cls.EXPORT_REF_FIELD: tree.export_ref,
        }

    @classmethod
    def export_ref(cls, storage: Optional[Dict[str, Any]]) -> Optional[str]:
        """Read the export folder handle from a storage record."""
        if not storage:
            return None
        return storage.get(cls.EXPORT_REF_FIELD) or None

    @classmethod
    def with_export_link(cls, storage: Dict[str, Any], link: ExportLink) -> Dict[str, Any]:
        """Return a copy of the storage record with an active export link."""
        updated = dict(storage)
        updated['exportLink'] = link.url
        if cls.LINK_ID_FIELD and link.id:
            updated[cls.LINK_ID_FIELD] = link.id
        return updated

    @classmethod
    def without_export_link(cls, storage: Dict[str, Any]) -> Dict[str, Any]:
        """Return a copy of the storage record with the export link removed."""
        updated = dict(storage)
        updated.pop('exportLink', None)
        if cls.LINK_ID_FIELD:
            updated.pop(cls.LINK_ID_FIELD, None)
        return updated
