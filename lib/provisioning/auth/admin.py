"""
Admin Authentication
====================
Verifies the admin bearer token sent with every provisioning request.

Tokens are Firebase ID tokens. A caller is an admin when the token carries
an ``admin: true`` custom claim or its email is listed in ``ADMIN_EMAILS``.
"""

import os
from typing import Any, Callable, Dict, Mapping, Optional

from ..errors import AuthenticationError

TokenVerifier = Callable[[str], Dict[str, Any]]


def _firebase_verifier(token: str) -> Dict[str, Any]:
    """Verify a Firebase ID token with firebase-admin."""
    import firebase_admin
    from firebase_admin import auth

    try:
        firebase_admin.get_app()
    except ValueError:
        firebase_admin.initialize_app()

    try:
        return auth.verify_id_token(token)
    except (ValueError, auth.InvalidIdTokenError, auth.ExpiredIdTokenError,
            auth.RevokedIdTokenError, auth.CertificateFetchError) as e:
        raise AuthenticationError(f"Invalid admin token: {e}")


def extract_bearer_token(headers: Optional[Mapping[str, Any]]) -> Optional[str]:
    """Pull the bearer token out of request headers (case-insensitive)."""
    if not headers:
        return None

    for key, value in headers.items():
        if str(key).lower() == 'authorization' and isinstance(value, str):
            scheme, _, token = value.strip().partition(' ')
            if scheme.lower() == 'bearer' and token.strip():
                return token.strip()
    return None


def _admin_emails(environ: Optional[Mapping[str, str]] = None) -> set:
    env = os.environ if environ is None else environ
    raw = env.get('ADMIN_EMAILS', '')
    return {email.strip().lower() for email in raw.split(',') if email.strip()}


def verify_admin_request(
    headers: Optional[Mapping[str, Any]],
    verifier: Optional[TokenVerifier] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> str:
    """
    Authenticate an admin request.

    Args:
        headers: Request headers
        verifier: Token verifier returning decoded claims (Firebase by default)
        environ: Environment used for the ADMIN_EMAILS allow-list

    Returns:
        Identity of the admin (email, or uid when no email is present)

    Raises:
        AuthenticationError: If the token is missing, invalid or not an admin
    """
    token = extract_bearer_token(headers)
    if not token:
        raise AuthenticationError("Missing admin bearer token")

    claims = (verifier or _firebase_verifier)(token)
    if not isinstance(claims, dict):
        raise AuthenticationError("Invalid admin token")

    email = (claims.get('email') or '').lower()
    is_admin = claims.get('admin') is True or (email and email in _admin_emails(environ))

    if not is_admin:
        raise AuthenticationError("Caller is not an admin")

    return email or claims.get('uid') or claims.get('sub') or 'unknown'
