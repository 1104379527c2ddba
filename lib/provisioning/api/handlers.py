"""
Admin Route Handlers
====================
HTTP surface for project provisioning, shared by the serverless functions.

Routes (all require an admin bearer token):
    POST   /admin/projects                       create (provider from body, default gdrive)
    POST   /admin/projects/dropbox               create on Dropbox
    POST   /admin/projects/{code}/link           Google Drive export link get-or-create
    DELETE /admin/projects/{code}/link           Google Drive export link revoke
    POST   /admin/projects/{code}/link/dropbox   Dropbox export link get-or-create
    DELETE /admin/projects/{code}/link/dropbox   Dropbox export link revoke
"""

import json
import re
import traceback
import uuid
from typing import Any, Callable, Dict, Optional

from ..auth.admin import TokenVerifier, verify_admin_request
from ..config.constants import (
    PROVISIONING_VERSION,
    STORAGE_PROVIDER_DROPBOX,
    STORAGE_PROVIDER_GOOGLE_DRIVE,
    SUPPORTED_STORAGE_PROVIDERS,
)
from ..errors import InvalidRequestError, NotFoundError, ProviderError, ProvisioningError
from ..projects.service import ProjectProvisioner
from ..projects.store import FirestoreProjectStore

VERSION = f"{PROVISIONING_VERSION}-admin"

_CREATE_ROUTE = re.compile(r'^/admin/projects(?:/(?P<provider>dropbox))?/?$')
_LINK_ROUTE = re.compile(r'^/admin/projects/(?P<code>[^/]+)/link(?:/(?P<provider>dropbox))?/?$')

# DigitalOcean web-action metadata, never part of the request body
_OW_FIELDS = ('__ow_method', '__ow_path', '__ow_headers', '__ow_body', '__ow_query', '__ow_isBase64Encoded')


def _response(status_code: int, payload: Dict[str, Any], correlation_id: str) -> Dict[str, Any]:
    body = dict(payload)
    body['correlation_id'] = correlation_id
    body['version'] = VERSION
    return {
        'statusCode': status_code,
        'headers': {'Content-Type': 'application/json'},
        'body': json.dumps(body, default=str),
    }


def _error_response(error: ProvisioningError, correlation_id: str) -> Dict[str, Any]:
    payload = {'error': error.message}
    if isinstance(error, ProviderError):
        payload['provider'] = error.provider
        payload['provider_message'] = error.raw_message
    return _response(error.status_code, payload, correlation_id)


def _parse_request(event: Dict[str, Any]):
    """Extract (method, path, headers, body) from the various event formats"""
    method = str(event.get('__ow_method') or event.get('method') or 'GET').upper()
    path = event.get('__ow_path') or event.get('path') or ''
    if path and not path.startswith('/'):
        path = '/' + path
    headers = event.get('__ow_headers') or event.get('headers') or {}

    # Raw body (web action with raw-http) or wrapped body
    raw_body = event.get('__ow_body', event.get('body'))
    if isinstance(raw_body, str) and raw_body.strip():
        try:
            body = json.loads(raw_body)
        except json.JSONDecodeError:
            raise InvalidRequestError("Request body is not valid JSON")
    elif isinstance(raw_body, dict):
        body = raw_body
    else:
        # Direct format (fields at top level)
        excluded = set(_OW_FIELDS) | {'method', 'path', 'headers', 'body'}
        body = {k: v for k, v in event.items() if k not in excluded}

    if not isinstance(body, dict):
        raise InvalidRequestError("Request body must be a JSON object")

    return method, path, headers, body


def _default_provisioner() -> ProjectProvisioner:
    return ProjectProvisioner(FirestoreProjectStore())


def handle_request(
    event: Dict[str, Any],
    context: Any = None,
    provisioner: Optional[ProjectProvisioner] = None,
    verifier: Optional[TokenVerifier] = None,
    provisioner_factory: Callable[[], ProjectProvisioner] = _default_provisioner,
) -> Dict[str, Any]:
    """
    Route an admin provisioning request.

    Args:
        event: Serverless function event
        context: Function context (unused)
        provisioner: Provisioning service (built lazily if None)
        verifier: Admin token verifier (Firebase if None)
        provisioner_factory: Builds the default provisioner

    Returns:
        {statusCode, headers, body} response dict
    """
    correlation_id = str(uuid.uuid4())

    try:
        method, path, headers, body = _parse_request(event)
        print(f"=== PROVISIONING {method} {path} v{VERSION} === [ID: {correlation_id}]")

        actor = verify_admin_request(headers, verifier=verifier)
        print(f"Authenticated admin: {actor}")

        create_match = _CREATE_ROUTE.match(path)
        link_match = _LINK_ROUTE.match(path)

        if create_match and method == 'POST':
            provider_type = create_match.group('provider') or body.get('provider')
            if provider_type is not None and provider_type not in SUPPORTED_STORAGE_PROVIDERS:
                raise InvalidRequestError(
                    f"provider must be '{STORAGE_PROVIDER_DROPBOX}' or '{STORAGE_PROVIDER_GOOGLE_DRIVE}'"
                )

            event_name = body.get('eventName')
            event_date = body.get('eventDate')
            missing = [f for f, v in (('eventName', event_name), ('eventDate', event_date)) if not v]
            if missing:
                raise InvalidRequestError(f"Missing required fields: {', '.join(missing)}")

            service = provisioner or provisioner_factory()
            record = service.create_project(event_name, event_date, provider_type, actor)
            return _response(201, {'project': record}, correlation_id)

        if link_match and method in ('POST', 'DELETE'):
            code = link_match.group('code')
            provider_type = link_match.group('provider') or STORAGE_PROVIDER_GOOGLE_DRIVE

            service = provisioner or provisioner_factory()
            if method == 'POST':
                result = service.get_or_create_export_link(code, provider_type, actor)
            else:
                result = service.revoke_export_link(code, provider_type, actor)
            return _response(200, result, correlation_id)

        raise NotFoundError(f"No route for {method} {path}")

    except ProvisioningError as e:
        print(f"Provisioning request failed ({e.status_code}): {e.message}")
        return _error_response(e, correlation_id)

    except Exception as e:
        print(f"Provisioning error: {e}")
        print(f"Traceback: {traceback.format_exc()}")
        return _response(500, {'error': str(e)}, correlation_id)
