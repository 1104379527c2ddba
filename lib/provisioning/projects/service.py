"""
Project Provisioning Service
============================
Orchestrates code allocation, provider calls, persistence and the audit trail.

Flows:
- create_project: allocate code -> provider tree -> record with storage ids
  (audit: create, <provider>_tree_created)
- get_or_create_export_link: stored export ref -> provider link
  -> storage link (audit: export_link_ready)
- revoke_export_link: stored export ref -> provider revoke
  -> storage without link (audit: export_link_revoked)

Only successful actions reach the audit trail. A provider failure leaves the
record as it was before the call.
"""

from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

from .codes import allocate_project_code, normalize_event_date
from .store import BaseProjectStore
from ..config.constants import (
    AUDIT_ACTION_CREATE,
    AUDIT_ACTION_EXPORT_LINK_READY,
    AUDIT_ACTION_EXPORT_LINK_REVOKED,
    AUDIT_ACTION_TREE_CREATED,
    DEFAULT_STORAGE_PROVIDER,
)
from ..errors import NotFoundError, PreconditionError
from ..providers.base import BaseStorageProvider
from ..providers.factory import StorageFactory


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _timestamp(moment: datetime) -> str:
    return moment.astimezone(timezone.utc).isoformat().replace('+00:00', 'Z')


class ProjectProvisioner:
    """
    Provisioning operations for event projects.

    Usage:
        provisioner = ProjectProvisioner(FirestoreProjectStore())
        record = provisioner.create_project("Boda Ana", "2025-06-15", "dropbox", "admin@example.com")
        link = provisioner.get_or_create_export_link(record['projectCode'], actor="admin@example.com")
    """

    def __init__(
        self,
        store: BaseProjectStore,
        provider_builder: Callable[[str], BaseStorageProvider] = StorageFactory.create,
        clock: Callable[[], datetime] = _utc_now,
    ):
        """
        Args:
            store: Project record store
            provider_builder: Returns a configured provider for a provider type
            clock: Returns the current UTC datetime (audit timestamps)
        """
        self.store = store
        self.provider_builder = provider_builder
        self.clock = clock

    def _audit_entry(self, action: str, actor: str) -> Dict[str, Any]:
        return {'action': action, 'at': _timestamp(self.clock()), 'by': actor}

    def _load(self, code: str) -> Dict[str, Any]:
        record = self.store.get(code)
        if record is None:
            raise NotFoundError(f"Project {code} not found")
        return record

    def _storage_for(self, code: str, record: Dict[str, Any], expected_provider: Optional[str]):
        """Return (storage, provider class) for a project, checking the provider."""
        storage = record.get('storage') or {}
        provider_type = storage.get('provider')

        if not provider_type:
            raise PreconditionError(f"Project {code} has no storage provider recorded")

        if expected_provider and provider_type != expected_provider:
            raise PreconditionError(
                f"Project {code} uses {provider_type} storage, not {expected_provider}"
            )

        return storage, StorageFactory.get_provider_class(provider_type)

    # -------------------------------------------------------------------------
    # Project creation
    # -------------------------------------------------------------------------

    def create_project(
        self,
        event_name: str,
        event_date,
        provider_type: Optional[str] = None,
        actor: str = "unknown",
    ) -> Dict[str, Any]:
        """
        Create a project's folder tree, then persist its record.

        Returns:
            The persisted project record

        Raises:
            InvalidRequestError: Bad name/date or unknown provider
            CodeExhaustedError: No free project code
            ProviderError / AuthenticationError: Provider failures
        """
        provider_class = StorageFactory.get_provider_class(provider_type or DEFAULT_STORAGE_PROVIDER)
        provider_type = provider_class.PROVIDER_TYPE
        event_date = normalize_event_date(event_date)

        # Configuration problems surface before anything is written
        provider = self.provider_builder(provider_type)

        code = allocate_project_code(event_name, event_date, self.store.exists)
        print(f"Allocated project code: {code} (provider: {provider_type})")

        # Nothing is stored until the tree exists; a retry after a failed
        # tree reallocates the same code and reuses the partial folders.
        tree = provider.create_project_tree(code)
        storage = provider_class.storage_from_tree(tree)

        record = {
            'projectCode': code,
            'eventName': event_name.strip(),
            'eventDate': event_date,
            'createdAt': _timestamp(self.clock()),
            'createdBy': actor,
            'storage': storage,
            'audit': [
                self._audit_entry(AUDIT_ACTION_CREATE, actor),
                self._audit_entry(AUDIT_ACTION_TREE_CREATED.format(provider=provider_type), actor),
            ],
        }
        self.store.create(record)

        print(f"Project {code} provisioned on {provider.get_provider_name()}")
        return record

    # -------------------------------------------------------------------------
    # Export links
    # -------------------------------------------------------------------------

    def get_or_create_export_link(
        self,
        code: str,
        expected_provider: Optional[str] = None,
        actor: str = "unknown",
    ) -> Dict[str, Any]:
        """
        Return the project's export link, creating it if needed.

        Raises:
            NotFoundError: Project missing
            PreconditionError: No export folder reference, or provider mismatch
        """
        record = self._load(code)
        storage, provider_class = self._storage_for(code, record, expected_provider)

        export_ref = provider_class.export_ref(storage)
        if not export_ref:
            raise PreconditionError(
                f"Project {code} has no export folder reference "
                f"({provider_class.EXPORT_REF_FIELD} missing)"
            )

        provider = self.provider_builder(provider_class.PROVIDER_TYPE)
        link = provider.get_or_create_export_link(export_ref)

        updated = self.store.update_storage(
            code,
            provider_class.with_export_link(storage, link),
            self._audit_entry(AUDIT_ACTION_EXPORT_LINK_READY, actor),
        )

        print(f"Export link ready for {code}")
        return {'projectCode': code, 'url': link.url, 'storage': updated['storage']}

    def revoke_export_link(
        self,
        code: str,
        expected_provider: Optional[str] = None,
        actor: str = "unknown",
    ) -> Dict[str, Any]:
        """
        Revoke the project's export link.

        Raises:
            NotFoundError: Project missing
            PreconditionError: No active link, no export folder reference, or provider mismatch
        """
        record = self._load(code)
        storage, provider_class = self._storage_for(code, record, expected_provider)

        if not storage.get('exportLink'):
            raise PreconditionError(f"Project {code} has no active export link")

        export_ref = provider_class.export_ref(storage)
        if not export_ref:
            raise PreconditionError(
                f"Project {code} has no export folder reference "
                f"({provider_class.EXPORT_REF_FIELD} missing)"
            )

        link_id = storage.get(provider_class.LINK_ID_FIELD) if provider_class.LINK_ID_FIELD else None

        provider = self.provider_builder(provider_class.PROVIDER_TYPE)
        provider.revoke_export_link(export_ref, link_id=link_id)

        updated = self.store.update_storage(
            code,
            provider_class.without_export_link(storage),
            self._audit_entry(AUDIT_ACTION_EXPORT_LINK_REVOKED, actor),
        )

        print(f"Export link revoked for {code}")
        return {'projectCode': code, 'revoked': True, 'storage': updated['storage']}
