"""
Projects module - Project codes, records and provisioning orchestration.
"""

from .codes import make_project_code, allocate_project_code, normalize_event_date
from .store import BaseProjectStore, FirestoreProjectStore, check_provider_unchanged
from .service import ProjectProvisioner

__all__ = [
    "make_project_code",
    "allocate_project_code",
    "normalize_event_date",
    "BaseProjectStore",
    "FirestoreProjectStore",
    "check_provider_unchanged",
    "ProjectProvisioner",
]
