"""
Project Record Store
====================
Durable project records: chosen provider, provider folder/link identifiers,
and an append-only audit trail of provisioning actions.

The store enforces two invariants:
- storage.provider never changes once set
- audit entries are only ever appended, in order
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from ..config.constants import PROJECTS_COLLECTION
from ..errors import NotFoundError, PreconditionError


def check_provider_unchanged(code: str, current: Optional[Dict[str, Any]], new: Dict[str, Any]) -> None:
    """
    Reject a storage write that would switch the project's provider.

    Raises:
        PreconditionError: If the provider would change
    """
    current_provider = (current or {}).get('provider')
    new_provider = (new or {}).get('provider')

    if current_provider and new_provider != current_provider:
        raise PreconditionError(
            f"Project {code} uses {current_provider} storage; "
            f"cannot switch to {new_provider}"
        )


class BaseProjectStore(ABC):
    """Interface to the project records."""

    @abstractmethod
    def exists(self, code: str) -> bool:
        """Check whether a project code is taken."""
        pass

    @abstractmethod
    def get(self, code: str) -> Optional[Dict[str, Any]]:
        """Load a project record, or None if missing."""
        pass

    @abstractmethod
    def create(self, record: Dict[str, Any]) -> None:
        """
        Persist a new project record keyed by its projectCode.

        Raises:
            PreconditionError: If the code is already taken
        """
        pass

    @abstractmethod
    def update_storage(self, code: str, storage: Dict[str, Any], audit_entry: Dict[str, Any]) -> Dict[str, Any]:
        """
        Replace the storage record and append one audit entry, together.

        Returns:
            The updated project record

        Raises:
            NotFoundError: If the project is missing
            PreconditionError: If the provider would change
        """
        pass


class FirestoreProjectStore(BaseProjectStore):
    """
    Project records in Firestore, one document per project code.

    Audit appends run in a transaction (read, append, write) instead of
    ArrayUnion, which would silently drop an entry equal to an existing one.
    """

    def __init__(self, client=None, collection: str = PROJECTS_COLLECTION):
        """
        Args:
            client: Firestore client (default app's client if None)
            collection: Collection holding project documents
        """
        if client is None:
            import firebase_admin
            from firebase_admin import firestore

            try:
                firebase_admin.get_app()
            except ValueError:
                firebase_admin.initialize_app()
            client = firestore.client()

        self.client = client
        self.collection = collection

    def _doc(self, code: str):
        return self.client.collection(self.collection).document(code)

    def exists(self, code: str) -> bool:
        return self._doc(code).get().exists

    def get(self, code: str) -> Optional[Dict[str, Any]]:
        snapshot = self._doc(code).get()
        if not snapshot.exists:
            return None
        return snapshot.to_dict()

    def create(self, record: Dict[str, Any]) -> None:
        from google.api_core import exceptions

        code = record['projectCode']
        try:
            self._doc(code).create(record)
        except exceptions.AlreadyExists:
            raise PreconditionError(f"Project {code} already exists")

    def update_storage(self, code: str, storage: Dict[str, Any], audit_entry: Dict[str, Any]) -> Dict[str, Any]:
        from firebase_admin import firestore

        doc_ref = self._doc(code)

        @firestore.transactional
        def _update_in_transaction(transaction):
            snapshot = doc_ref.get(transaction=transaction)
            if not snapshot.exists:
                raise NotFoundError(f"Project {code} not found")

            record = snapshot.to_dict()
            check_provider_unchanged(code, record.get('storage'), storage)

            audit = list(record.get('audit') or [])
            audit.append(audit_entry)

            transaction.update(doc_ref, {'storage': storage, 'audit': audit})

            record['storage'] = storage
            record['audit'] = audit
            return record

        return _update_in_transaction(self.client.transaction())
