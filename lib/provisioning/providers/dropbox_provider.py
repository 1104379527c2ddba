"""
Dropbox Storage Provider
========================
Dropbox implementation of project provisioning.

Features:
- Access tokens from the shared TokenCache (refresh-token flow)
- Team account support (admin impersonation + namespace root)
- Idempotent folder tree creation (path/conflict/folder is success)
- Shared link get-or-create and revoke
"""

from typing import Any, Callable, Optional

import requests
import dropbox
import dropbox.common
import dropbox.sharing
from dropbox.exceptions import ApiError, AuthError, DropboxException

from .base import BaseStorageProvider, ExportLink, ProjectTree
from ..auth.token_cache import TokenCache
from ..config.constants import (
    DROPBOX_API_TIMEOUT,
    EXPORT_FOLDER_NAME,
    PROJECT_SUBFOLDERS,
    STORAGE_PROVIDER_DROPBOX,
)
from ..errors import AuthenticationError, NotFoundError, ProviderConflictError, ProviderError
from ..utils.path_utils import join_dropbox_path, normalize_dropbox_path


def error_summary(payload: Any) -> str:
    """
    Reduce a Dropbox error to its ``error_summary`` form.

    Accepts the raw summary string, a decoded JSON error body, or an
    ApiError from the SDK. The SDK drops the server's summary string, so it
    is rebuilt from the union tags (e.g. ``path/conflict/folder``).
    """
    if payload is None:
        return ""
    if isinstance(payload, str):
        return payload
    if isinstance(payload, dict):
        return str(payload.get('error_summary') or "")

    error = getattr(payload, 'error', payload)
    tags = []
    while isinstance(getattr(error, '_tag', None), str) and len(tags) < 10:
        tags.append(error._tag)
        error = getattr(error, '_value', None)
    return "/".join(tags)


def is_already_exists_error(payload: Any) -> bool:
    """
    True if a Dropbox error means "a folder already exists at this path".

    A file occupying the path (path/conflict/file) is a genuine error.
    """
    return "path/conflict/folder" in error_summary(payload)


def _has_tag(payload: Any, tag: str) -> bool:
    return tag in error_summary(payload).split("/")


class DropboxProvider(BaseStorageProvider):
    """
    Dropbox storage provider.

    Supports both personal and team (business) accounts.

    Team Account Setup:
    - Requires team_member_id for admin impersonation
    - Automatically configures namespace root
    - Uses as_admin() for team-wide access

    Storage record:
        {provider: 'dropbox', rootPath, exportPath, exportLink?, exportLinkId?}
    """

    PROVIDER_TYPE = STORAGE_PROVIDER_DROPBOX
    PROVIDER_NAME = "Dropbox"

    ROOT_FIELD = "rootPath"
    EXPORT_REF_FIELD = "exportPath"
    LINK_ID_FIELD = "exportLinkId"

    def __init__(
        self,
        token_cache: TokenCache,
        team_member_id: Optional[str] = None,
        projects_root: str = "/",
        client_factory: Optional[Callable[[str], Any]] = None,
    ):
        """
        Args:
            token_cache: Dropbox token cache
            team_member_id: Team member to act as (team accounts only)
            projects_root: Folder under which project roots are created
            client_factory: Builds a client from an access token (tests)
        """
        self.token_cache = token_cache
        self.team_member_id = team_member_id
        self.projects_root = normalize_dropbox_path(projects_root) or "/"
        self._client_factory = client_factory

        # Namespace-rooted team client, rebuilt when the access token changes
        self._team_client = None
        self._team_client_token = None

    @classmethod
    def from_settings(cls, settings, token_cache: TokenCache) -> "DropboxProvider":
        return cls(
            token_cache,
            team_member_id=settings.team_member_id,
            projects_root=settings.projects_root,
        )

    # -------------------------------------------------------------------------
    # Client
    # -------------------------------------------------------------------------

    def _get_client(self):
        access_token = self.token_cache.get_access_token()

        if self._client_factory is not None:
            return self._client_factory(access_token)

        try:
            if self.team_member_id:
                if self._team_client is None or self._team_client_token != access_token:
                    self._team_client = self._create_team_client(access_token, self.team_member_id)
                    self._team_client_token = access_token
                return self._team_client
            return dropbox.Dropbox(oauth2_access_token=access_token, timeout=DROPBOX_API_TIMEOUT)
        except AuthError as e:
            raise AuthenticationError(f"Dropbox authentication failed: {e}", provider=self.PROVIDER_TYPE)
        except (DropboxException, requests.RequestException) as e:
            raise ProviderError(
                f"Dropbox connection error: {e}", provider=self.PROVIDER_TYPE, raw_message=str(e)
            )

    def _create_team_client(self, access_token: str, member_id: str) -> dropbox.Dropbox:
        """Create team client with admin impersonation and namespace root."""
        dbx_team = dropbox.DropboxTeam(oauth2_access_token=access_token, timeout=DROPBOX_API_TIMEOUT)

        # Impersonate team member
        client = dbx_team.as_admin(member_id)

        # Get and set namespace root
        account = client.users_get_current_account()
        root_ns_id = account.root_info.root_namespace_id

        print(f"Using Dropbox team namespace: {root_ns_id}")
        return client.with_path_root(dropbox.common.PathRoot.root(root_ns_id))

    def _translate(self, error: Exception, action: str) -> Exception:
        """Map an SDK/transport failure onto the provisioning error taxonomy."""
        if isinstance(error, AuthError):
            return AuthenticationError(f"Dropbox rejected the access token: {error}", provider=self.PROVIDER_TYPE)

        if isinstance(error, ApiError):
            summary = error_summary(error)
            if _has_tag(error, 'not_found'):
                return NotFoundError(f"Dropbox {action}: path not found ({summary})")
            return ProviderError(
                f"Dropbox {action} failed: {summary or error}",
                provider=self.PROVIDER_TYPE,
                raw_message=str(error),
                provider_status=409,
            )

        return ProviderError(
            f"Dropbox {action} failed: {error}",
            provider=self.PROVIDER_TYPE,
            raw_message=str(error),
        )

    # -------------------------------------------------------------------------
    # Folder tree
    # -------------------------------------------------------------------------

    def _create_folder(self, client, path: str) -> None:
        """Create one folder; ProviderConflictError if it already exists."""
        try:
            client.files_create_folder_v2(path)
        except ApiError as e:
            if is_already_exists_error(e):
                raise ProviderConflictError(f"Folder already exists: {path}", provider=self.PROVIDER_TYPE)
            raise self._translate(e, f"create folder {path}")
        except (DropboxException, requests.RequestException) as e:
            raise self._translate(e, f"create folder {path}")

    def _ensure_folder(self, client, path: str) -> None:
        try:
            self._create_folder(client, path)
            print(f"Created folder: {path}")
        except ProviderConflictError as e:
            print(e.message)

    def create_project_tree(self, project_code: str) -> ProjectTree:
        """Create /<root>/<code> and every project subfolder, sequentially."""
        client = self._get_client()

        root_path = join_dropbox_path(self.projects_root, project_code)
        print(f"Provisioning Dropbox tree: {root_path}")

        self._ensure_folder(client, root_path)
        for subfolder in PROJECT_SUBFOLDERS:
            self._ensure_folder(client, join_dropbox_path(root_path, subfolder))

        export_path = join_dropbox_path(root_path, EXPORT_FOLDER_NAME)
        return ProjectTree(root=root_path, export_ref=export_path)

    # -------------------------------------------------------------------------
    # Export links
    # -------------------------------------------------------------------------

    def _list_links(self, client, path: str) -> list:
        try:
            result = client.sharing_list_shared_links(path=path, direct_only=True)
        except (DropboxException, requests.RequestException) as e:
            raise self._translate(e, f"list shared links for {path}")
        return list(result.links or [])

    def get_or_create_export_link(self, folder_ref: str) -> ExportLink:
        """Reuse the folder's shared link or create a public, view-only one."""
        client = self._get_client()
        path = normalize_dropbox_path(folder_ref)

        links = self._list_links(client, path)
        if links:
            print(f"Reusing existing shared link for {path}")
            return ExportLink(url=links[0].url, id=links[0].id)

        settings = dropbox.sharing.SharedLinkSettings(
            requested_visibility=dropbox.sharing.RequestedVisibility.public,
            access=dropbox.sharing.RequestedLinkAccessLevel.viewer,
        )

        try:
            link = self._create_link(client, path, settings)
        except ProviderConflictError as conflict:
            # Another request shared the folder in between
            links = self._list_links(client, path)
            if not links:
                raise ProviderError(conflict.message, provider=self.PROVIDER_TYPE)
            print(f"Shared link for {path} appeared concurrently, reusing it")
            return ExportLink(url=links[0].url, id=links[0].id)

        print(f"Created shared link for {path}")
        return ExportLink(url=link.url, id=link.id)

    def _create_link(self, client, path: str, settings):
        """Create a shared link; ProviderConflictError if one already exists."""
        try:
            return client.sharing_create_shared_link_with_settings(path, settings=settings)
        except ApiError as e:
            if _has_tag(e, 'shared_link_already_exists'):
                raise ProviderConflictError(
                    f"Shared link already exists for {path}", provider=self.PROVIDER_TYPE
                )
            raise self._translate(e, f"create shared link for {path}")
        except (DropboxException, requests.RequestException) as e:
            raise self._translate(e, f"create shared link for {path}")

    def revoke_export_link(self, folder_ref: str, link_id: Optional[str] = None) -> None:
        """Revoke the folder's shared link(s); nothing shared is a no-op."""
        client = self._get_client()
        path = normalize_dropbox_path(folder_ref)

        links = self._list_links(client, path)
        if link_id is not None:
            matching = [link for link in links if link.id == link_id]
            if links and not matching:
                print(f"Stored link id {link_id} not found on {path}, revoking all direct links")
            else:
                links = matching

        if not links:
            print(f"No shared link to revoke for {path}")
            return

        for link in links:
            try:
                client.sharing_revoke_shared_link(link.url)
                print(f"Revoked shared link for {path}")
            except ApiError as e:
                if _has_tag(e, 'shared_link_not_found'):
                    print(f"Shared link for {path} already revoked")
                    continue
                raise self._translate(e, f"revoke shared link for {path}")
            except (DropboxException, requests.RequestException) as e:
                raise self._translate(e, f"revoke shared link for {path}")
