"""
Pytest Configuration and Fixtures
==================================
Loads test credentials from environment and provides reusable fixtures.

Unit tests run against in-memory fakes of the Dropbox client, the Drive
service and the project store; integration tests use real credentials and
are skipped when none are configured.
"""

import copy
import os
import re
import sys
from pathlib import Path
from types import SimpleNamespace

import pytest
from dotenv import load_dotenv

# Add lib to path for imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root / "lib"))

# Load test environment variables
env_file = project_root / ".env.test"
if env_file.exists():
    load_dotenv(env_file)
else:
    # Try loading from CI environment
    load_dotenv()

from provisioning.errors import NotFoundError, PreconditionError  # noqa: E402
from provisioning.projects.store import BaseProjectStore, check_provider_unchanged  # noqa: E402


# =============================================================================
# FAKES
# =============================================================================

class FakeClock:
    """Monotonic test clock returning seconds."""

    def __init__(self, start: float = 1_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class CountingRefresher:
    """Token refresher that counts calls and hands out numbered tokens."""

    def __init__(self, prefix: str = "token", lifetime: float = 3600):
        self.prefix = prefix
        self.lifetime = lifetime
        self.calls = 0

    def __call__(self):
        self.calls += 1
        return f"{self.prefix}-{self.calls}", self.lifetime


def dropbox_api_error(*tags):
    """ApiError whose union tags spell out an error summary like path/conflict/folder."""
    from dropbox.exceptions import ApiError

    error = None
    for tag in reversed(tags):
        error = SimpleNamespace(_tag=tag, _value=error)
    return ApiError("req-test", error, None, None)


class FakeDropboxClient:
    """In-memory stand-in for dropbox.Dropbox covering folder and sharing calls."""

    def __init__(self):
        self.folders = set()
        self.links = {}
        self.calls = []
        self.create_link_settings = []
        self._link_counter = 0

    def files_create_folder_v2(self, path):
        self.calls.append(('create_folder', path))
        key = path.lower()
        if key in self.folders:
            raise dropbox_api_error('path', 'conflict', 'folder')

        # Dropbox creates missing parents
        parts = key.strip('/').split('/')
        for i in range(1, len(parts) + 1):
            self.folders.add('/' + '/'.join(parts[:i]))
        return SimpleNamespace(metadata=SimpleNamespace(path_display=path))

    def sharing_list_shared_links(self, path=None, direct_only=None):
        self.calls.append(('list_links', path))
        key = path.lower()
        if key not in self.folders:
            raise dropbox_api_error('path', 'not_found')
        link = self.links.get(key)
        return SimpleNamespace(links=[link] if link else [], has_more=False, cursor=None)

    def sharing_create_shared_link_with_settings(self, path, settings=None):
        self.calls.append(('create_link', path))
        self.create_link_settings.append(settings)
        key = path.lower()
        if key in self.links:
            raise dropbox_api_error('shared_link_already_exists')

        self._link_counter += 1
        link = SimpleNamespace(
            url=f"https://www.dropbox.com/scl/fo/link{self._link_counter}?dl=0",
            id=f"id:folder{self._link_counter}",
        )
        self.links[key] = link
        return link

    def sharing_revoke_shared_link(self, url):
        self.calls.append(('revoke_link', url))
        for key, link in list(self.links.items()):
            if link.url == url:
                del self.links[key]
                return None
        raise dropbox_api_error('shared_link_not_found')

    def count(self, call_name):
        return sum(1 for name, _ in self.calls if name == call_name)


def drive_http_error(status: int, message: str = "error"):
    import httplib2
    from googleapiclient.errors import HttpError

    content = ('{"error": {"code": %d, "message": "%s"}}' % (status, message)).encode()
    return HttpError(httplib2.Response({'status': status}), content)


class _FakeRequest:
    def __init__(self, fn):
        self._fn = fn

    def execute(self):
        return self._fn()


class _FakeFiles:
    def __init__(self, drive):
        self.drive = drive

    def list(self, q=None, **kwargs):
        self.drive.calls.append(('files.list', q))
        name = re.search(r"name='((?:[^'\\]|\\.)*)'", q).group(1).replace("\\'", "'")
        parent = re.search(r"'((?:[^'\\]|\\.)*)' in parents", q).group(1)

        def run():
            matches = [
                {'id': fid} for fid, f in self.drive.folders.items()
                if f['name'] == name and f['parent'] == parent
            ]
            return {'files': matches}
        return _FakeRequest(run)

    def create(self, body=None, **kwargs):
        self.drive.calls.append(('files.create', body['name']))

        def run():
            self.drive.counter += 1
            fid = f"id{self.drive.counter}"
            self.drive.folders[fid] = {'name': body['name'], 'parent': body['parents'][0]}
            return {'id': fid}
        return _FakeRequest(run)

    def get(self, fileId=None, fields=None, **kwargs):
        self.drive.calls.append(('files.get', fileId))

        def run():
            if fileId not in self.drive.folders:
                raise drive_http_error(404, f"File not found: {fileId}")
            result = {'webViewLink': f"https://drive.google.com/drive/folders/{fileId}"}
            if 'permissions' in (fields or ''):
                result['permissions'] = list(self.drive.perms.get(fileId, []))
            return result
        return _FakeRequest(run)


class _FakePermissions:
    def __init__(self, drive):
        self.drive = drive

    def create(self, fileId=None, body=None, **kwargs):
        self.drive.calls.append(('permissions.create', fileId))
        self.drive.created_permission_bodies.append(body)

        def run():
            self.drive.counter += 1
            perm = {'id': f"perm{self.drive.counter}", 'type': body['type'], 'role': body['role']}
            self.drive.perms.setdefault(fileId, []).append(perm)
            return {'id': perm['id']}
        return _FakeRequest(run)

    def delete(self, fileId=None, permissionId=None, **kwargs):
        self.drive.calls.append(('permissions.delete', permissionId))

        def run():
            perms = self.drive.perms.get(fileId, [])
            remaining = [p for p in perms if p['id'] != permissionId]
            if len(remaining) == len(perms):
                raise drive_http_error(404, "Permission not found")
            self.drive.perms[fileId] = remaining
            return None
        return _FakeRequest(run)

    def list(self, fileId=None, **kwargs):
        self.drive.calls.append(('permissions.list', fileId))
        return _FakeRequest(lambda: {'permissions': list(self.drive.perms.get(fileId, []))})


class FakeDriveService:
    """In-memory stand-in for the Drive v3 service resource."""

    def __init__(self, root_folder_id: str = "root123"):
        self.folders = {root_folder_id: {'name': 'Projects', 'parent': None}}
        self.perms = {}
        self.calls = []
        self.created_permission_bodies = []
        self.counter = 0

    def files(self):
        return _FakeFiles(self)

    def permissions(self):
        return _FakePermissions(self)

    def count(self, call_name):
        return sum(1 for name, _ in self.calls if name == call_name)


class InMemoryProjectStore(BaseProjectStore):
    """Dict-backed project store with the same invariants as Firestore."""

    def __init__(self, taken=()):
        self.records = {}
        self.taken = set(taken)
        self.exists_calls = []

    def exists(self, code):
        self.exists_calls.append(code)
        return code in self.records or code in self.taken

    def get(self, code):
        record = self.records.get(code)
        return copy.deepcopy(record) if record is not None else None

    def create(self, record):
        code = record['projectCode']
        if code in self.records:
            raise PreconditionError(f"Project {code} already exists")
        self.records[code] = copy.deepcopy(record)

    def update_storage(self, code, storage, audit_entry):
        record = self.records.get(code)
        if record is None:
            raise NotFoundError(f"Project {code} not found")
        check_provider_unchanged(code, record.get('storage'), storage)
        record['storage'] = copy.deepcopy(storage)
        record['audit'] = list(record.get('audit') or []) + [dict(audit_entry)]
        return copy.deepcopy(record)


# =============================================================================
# CREDENTIAL FIXTURES
# =============================================================================

@pytest.fixture(scope="session")
def dropbox_settings():
    """Dropbox settings from TEST_DROPBOX_* environment variables."""
    from provisioning.config import DropboxSettings

    env = {
        "DROPBOX_APP_KEY": os.getenv("TEST_DROPBOX_APP_KEY"),
        "DROPBOX_APP_SECRET": os.getenv("TEST_DROPBOX_APP_SECRET"),
        "DROPBOX_REFRESH_TOKEN": os.getenv("TEST_DROPBOX_REFRESH_TOKEN"),
        "DROPBOX_TEAM_MEMBER_ID": os.getenv("TEST_DROPBOX_TEAM_MEMBER_ID"),
        "DROPBOX_PROJECTS_ROOT": os.getenv("TEST_DROPBOX_PROJECTS_ROOT", "/VX-Provisioning-Tests"),
    }

    if not all(env[k] for k in DropboxSettings.REQUIRED):
        pytest.skip("Dropbox credentials not configured")

    return DropboxSettings.from_env({k: v for k, v in env.items() if v})


@pytest.fixture(scope="session")
def google_drive_settings():
    """Google Drive settings from TEST_GDRIVE_* environment variables."""
    from provisioning.config import GoogleDriveSettings

    env = {
        "GDRIVE_SERVICE_ACCOUNT_EMAIL": os.getenv("TEST_GDRIVE_SERVICE_ACCOUNT_EMAIL"),
        "GDRIVE_SERVICE_ACCOUNT_PRIVATE_KEY": os.getenv("TEST_GDRIVE_SERVICE_ACCOUNT_PRIVATE_KEY"),
        "GDRIVE_ROOT_FOLDER_ID": os.getenv("TEST_GDRIVE_ROOT_FOLDER_ID"),
        "GDRIVE_IMPERSONATE_SUBJECT": os.getenv("TEST_GDRIVE_IMPERSONATE_SUBJECT"),
    }

    if not all(env[k] for k in GoogleDriveSettings.REQUIRED):
        pytest.skip("Google Drive credentials not configured")

    return GoogleDriveSettings.from_env({k: v for k, v in env.items() if v})


@pytest.fixture(scope="session")
def encryption_key():
    """Fernet encryption key for testing."""
    key = os.getenv("TEST_ENCRYPTION_KEY")

    if not key:
        # Generate a temporary key for unit tests
        from cryptography.fernet import Fernet
        key = Fernet.generate_key().decode()

    return key


# =============================================================================
# PROVIDER FIXTURES
# =============================================================================

@pytest.fixture(autouse=True)
def reset_token_caches():
    """Every test starts with cold token caches."""
    from provisioning.auth.token_cache import _reset_token_caches

    _reset_token_caches()
    yield
    _reset_token_caches()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def fake_dropbox_client():
    return FakeDropboxClient()


@pytest.fixture
def fake_drive_service():
    return FakeDriveService(root_folder_id="root123")


@pytest.fixture
def dropbox_provider(fake_dropbox_client, clock):
    """Dropbox provider wired to the in-memory client."""
    from provisioning.auth import TokenCache
    from provisioning.providers import DropboxProvider

    cache = TokenCache("dropbox", CountingRefresher("sl.test", 14400), clock=clock)
    return DropboxProvider(cache, client_factory=lambda token: fake_dropbox_client)


@pytest.fixture
def google_drive_provider(fake_drive_service, clock):
    """Google Drive provider wired to the in-memory service."""
    from provisioning.auth import TokenCache
    from provisioning.providers import GoogleDriveProvider

    cache = TokenCache("gdrive", CountingRefresher("ya29.test", 3600), clock=clock)
    return GoogleDriveProvider(
        cache, root_folder_id="root123", service_factory=lambda token: fake_drive_service
    )


@pytest.fixture
def project_store():
    return InMemoryProjectStore()


@pytest.fixture
def provisioner(project_store, dropbox_provider, google_drive_provider):
    """Provisioning service over fakes, with a fixed audit clock."""
    from datetime import datetime, timezone
    from provisioning.projects import ProjectProvisioner

    providers = {"dropbox": dropbox_provider, "gdrive": google_drive_provider}
    return ProjectProvisioner(
        project_store,
        provider_builder=providers.__getitem__,
        clock=lambda: datetime(2025, 5, 1, 12, 0, tzinfo=timezone.utc),
    )


@pytest.fixture
def admin_verifier():
    """Accepts 'admin-token' as an admin and 'staff-token' as a non-admin."""
    from provisioning.errors import AuthenticationError

    def _verify(token):
        if token == "admin-token":
            return {"uid": "u1", "email": "admin@vx.test", "admin": True}
        if token == "staff-token":
            return {"uid": "u2", "email": "staff@vx.test"}
        raise AuthenticationError("Invalid admin token")

    return _verify


# =============================================================================
# UTILITY FIXTURES
# =============================================================================

@pytest.fixture
def mock_env(monkeypatch):
    """Helper to mock environment variables."""
    def _mock_env(env_dict):
        for key, value in env_dict.items():
            monkeypatch.setenv(key, value)
    return _mock_env


# =============================================================================
# TEST MARKERS COLLECTION
# =============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: Fast tests with no external dependencies")
    config.addinivalue_line("markers", "integration: Tests that call external APIs")
    config.addinivalue_line("markers", "dropbox: Tests requiring Dropbox credentials")
    config.addinivalue_line("markers", "google_drive: Tests requiring Google Drive credentials")
