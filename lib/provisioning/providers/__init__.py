"""
VX Provisioning Core - Storage Providers
========================================
Project folder trees and export links on cloud storage.

Supported:
    - Dropbox (with team account support)
    - Google Drive (service account, Shared Drive support)
"""

from .base import BaseStorageProvider, ProjectTree, ExportLink
from .factory import StorageFactory
from .dropbox_provider import DropboxProvider, is_already_exists_error
from .google_drive_provider import GoogleDriveProvider

__all__ = [
    "BaseStorageProvider",
    "ProjectTree",
    "ExportLink",
    "StorageFactory",
    "DropboxProvider",
    "GoogleDriveProvider",
    "is_already_exists_error",
]
