"""
VX Provisioning Core - Google Drive Storage Provider
====================================================
Google Drive implementation of project provisioning.

Drive identifies folders by id and happily accepts duplicate names, so
folder creation always lists children by name first and reuses a match.

Features:
- Service-account access tokens from the shared TokenCache
- Shared Drive support (supportsAllDrives on every call)
- Idempotent folder tree creation (list-before-create)
- "Anyone with the link" reader permission as the export link
"""

from typing import Any, Callable, Dict, List, Optional

from .base import BaseStorageProvider, ExportLink, ProjectTree
from ..auth.token_cache import TokenCache
from ..config.constants import (
    EXPORT_FOLDER_NAME,
    GOOGLE_FOLDER_MIME_TYPE,
    PROJECT_SUBFOLDERS,
    STORAGE_PROVIDER_GOOGLE_DRIVE,
)
from ..errors import AuthenticationError, NotFoundError, ProviderError

# Lazy import Google libraries
_google_imported = False
_Credentials = None
_build = None
_HttpError = None


def _import_google_libs():
    """Lazy import Google libraries only when needed"""
    global _google_imported, _Credentials, _build, _HttpError

    if _google_imported:
        return

    try:
        from google.oauth2.credentials import Credentials
        from googleapiclient.discovery import build
        from googleapiclient.errors import HttpError

        _Credentials = Credentials
        _build = build
        _HttpError = HttpError
        _google_imported = True

    except ImportError:
        raise ImportError(
            "Google API libraries not installed. "
            "Run: pip install google-auth google-api-python-client"
        )


def _escape_query_value(value: str) -> str:
    """Escape a literal for use inside a single-quoted Drive query string."""
    return value.replace('\\', '\\\\').replace("'", "\\'")


class GoogleDriveProvider(BaseStorageProvider):
    """
    Google Drive storage provider using a service account.

    Path Format:
    Unlike Dropbox which uses filesystem-style paths, Google Drive uses
    folder IDs. Project roots are created under the configured root folder,
    which must already be shared with the service account.

    Storage record:
        {provider: 'gdrive', rootId, exportId, exportLink?}

    No link id is stored: revoke re-queries the folder's permissions and
    removes the "anyone" permission.
    """

    PROVIDER_TYPE = STORAGE_PROVIDER_GOOGLE_DRIVE
    PROVIDER_NAME = "Google Drive"

    ROOT_FIELD = "rootId"
    EXPORT_REF_FIELD = "exportId"
    LINK_ID_FIELD = None

    def __init__(
        self,
        token_cache: TokenCache,
        root_folder_id: str,
        service_factory: Optional[Callable[[str], Any]] = None,
    ):
        """
        Args:
            token_cache: Google Drive token cache
            root_folder_id: Folder under which project roots are created
            service_factory: Builds a Drive service from an access token (tests)
        """
        self.token_cache = token_cache
        self.root_folder_id = root_folder_id
        self._service_factory = service_factory

    @classmethod
    def from_settings(cls, settings, token_cache: TokenCache) -> "GoogleDriveProvider":
        return cls(token_cache, root_folder_id=settings.root_folder_id)

    # -------------------------------------------------------------------------
    # Service
    # -------------------------------------------------------------------------

    def _get_service(self):
        _import_google_libs()
        access_token = self.token_cache.get_access_token()

        if self._service_factory is not None:
            return self._service_factory(access_token)

        credentials = _Credentials(token=access_token)
        return _build('drive', 'v3', credentials=credentials, cache_discovery=False)

    def _execute(self, request, action: str) -> Dict[str, Any]:
        """Execute a Drive request, mapping HttpError onto the error taxonomy."""
        try:
            result = request.execute()
        except _HttpError as e:
            status = getattr(e.resp, 'status', None)
            content = e.content.decode('utf-8', 'replace') if isinstance(e.content, bytes) else str(e.content)

            if status == 404:
                raise NotFoundError(f"Google Drive {action}: not found")
            if status == 401:
                raise AuthenticationError(
                    f"Google Drive rejected the access token: {content}", provider=self.PROVIDER_TYPE
                )
            raise ProviderError(
                f"Drive API error {status} during {action}: {content}",
                provider=self.PROVIDER_TYPE,
                raw_message=content,
                provider_status=status,
            )
        return result or {}

    # -------------------------------------------------------------------------
    # Folder tree
    # -------------------------------------------------------------------------

    def find_folder_by_name(self, service, name: str, parent_id: str) -> Optional[str]:
        """Return the id of a non-trashed child folder with this name, if any."""
        query = " and ".join([
            f"name='{_escape_query_value(name)}'",
            f"mimeType='{GOOGLE_FOLDER_MIME_TYPE}'",
            f"'{_escape_query_value(parent_id)}' in parents",
            "trashed=false",
        ])

        results = self._execute(
            service.files().list(
                q=query,
                spaces='drive',
                fields='files(id)',
                supportsAllDrives=True,
                includeItemsFromAllDrives=True,
            ),
            f"find folder {name}",
        )

        files = results.get('files') or []
        return files[0]['id'] if files else None

    def ensure_folder(self, service, name: str, parent_id: str) -> str:
        """Return the id of folder `name` under `parent_id`, creating it if missing."""
        existing = self.find_folder_by_name(service, name, parent_id)
        if existing:
            print(f"Folder already exists: {name} (ID: {existing})")
            return existing

        created = self._execute(
            service.files().create(
                body={
                    'name': name,
                    'mimeType': GOOGLE_FOLDER_MIME_TYPE,
                    'parents': [parent_id],
                },
                fields='id',
                supportsAllDrives=True,
            ),
            f"create folder {name}",
        )

        print(f"Created folder: {name} (ID: {created['id']})")
        return created['id']

    def create_project_tree(self, project_code: str) -> ProjectTree:
        """Create the project root under the root folder, then every subfolder."""
        service = self._get_service()
        print(f"Provisioning Google Drive tree: {project_code}")

        project_root_id = self.ensure_folder(service, project_code, self.root_folder_id)

        # Relative path -> folder id, so shared parents are resolved once
        folder_ids: Dict[str, str] = {'': project_root_id}
        for subfolder in PROJECT_SUBFOLDERS:
            parent_id = project_root_id
            path = ''
            for part in subfolder.split('/'):
                path = f"{path}/{part}" if path else part
                if path not in folder_ids:
                    folder_ids[path] = self.ensure_folder(service, part, parent_id)
                parent_id = folder_ids[path]

        return ProjectTree(root=project_root_id, export_ref=folder_ids[EXPORT_FOLDER_NAME])

    # -------------------------------------------------------------------------
    # Export links
    # -------------------------------------------------------------------------

    def _get_folder(self, service, folder_id: str) -> Dict[str, Any]:
        return self._execute(
            service.files().get(
                fileId=folder_id,
                fields='permissions(id,type,role),webViewLink',
                supportsAllDrives=True,
            ),
            f"get folder {folder_id}",
        )

    def _permissions(self, service, folder_id: str, folder: Dict[str, Any]) -> List[Dict[str, Any]]:
        """Permissions of a folder; shared drive items omit them from files.get."""
        if 'permissions' in folder:
            return folder.get('permissions') or []

        listed = self._execute(
            service.permissions().list(
                fileId=folder_id,
                fields='permissions(id,type,role)',
                supportsAllDrives=True,
            ),
            f"list permissions for {folder_id}",
        )
        return listed.get('permissions') or []

    def get_or_create_export_link(self, folder_ref: str) -> ExportLink:
        """Ensure an anyone-with-the-link reader permission and return the view link."""
        service = self._get_service()

        folder = self._get_folder(service, folder_ref)
        permissions = self._permissions(service, folder_ref, folder)

        has_anyone = any(
            p.get('type') == 'anyone' and p.get('role') == 'reader' for p in permissions
        )
        if has_anyone:
            print(f"Reusing existing public permission on {folder_ref}")
        else:
            self._execute(
                service.permissions().create(
                    fileId=folder_ref,
                    body={'role': 'reader', 'type': 'anyone', 'allowFileDiscovery': False},
                    fields='id',
                    supportsAllDrives=True,
                ),
                f"share folder {folder_ref}",
            )
            print(f"Created public permission on {folder_ref}")

        url = folder.get('webViewLink')
        if not url:
            refreshed = self._execute(
                service.files().get(fileId=folder_ref, fields='webViewLink', supportsAllDrives=True),
                f"get link for {folder_ref}",
            )
            url = refreshed.get('webViewLink')

        if not url:
            raise ProviderError(
                f"Google Drive returned no webViewLink for {folder_ref}",
                provider=self.PROVIDER_TYPE,
            )

        return ExportLink(url=url)

    def revoke_export_link(self, folder_ref: str, link_id: Optional[str] = None) -> None:
        """Delete the folder's "anyone" permission; none present is a no-op."""
        service = self._get_service()

        folder = self._get_folder(service, folder_ref)
        permissions = self._permissions(service, folder_ref, folder)

        permission = next((p for p in permissions if p.get('type') == 'anyone'), None)
        if permission is None:
            print(f"No public permission to revoke on {folder_ref}")
            return

        try:
            self._execute(
                service.permissions().delete(
                    fileId=folder_ref,
                    permissionId=permission['id'],
                    supportsAllDrives=True,
                ),
                f"revoke permission on {folder_ref}",
            )
        except NotFoundError:
            print(f"Public permission on {folder_ref} already removed")
            return

        print(f"Revoked public permission on {folder_ref}")
