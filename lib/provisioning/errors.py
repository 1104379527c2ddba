"""
Provisioning Errors
===================
Error taxonomy shared by providers, the project service and the admin routes.

Every error carries the HTTP status the route boundary responds with, so
handlers never need to know which layer raised it.
"""

from typing import Optional


class ProvisioningError(Exception):
    """Base class for all provisioning failures."""

    status_code = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class AuthenticationError(ProvisioningError):
    """
    Raised when credentials are rejected.

    This covers:
    - Provider token refresh failures (bad refresh token, revoked app)
    - Malformed token endpoint responses
    - Missing or invalid admin bearer tokens
    """

    status_code = 401

    def __init__(self, message: str, provider: Optional[str] = None):
        self.provider = provider
        super().__init__(message)


class ConfigurationError(ProvisioningError):
    """Raised when required environment configuration is missing or unusable."""

    status_code = 500

    def __init__(self, message: str, missing: Optional[list] = None):
        self.missing = list(missing or [])
        super().__init__(message)


class NotFoundError(ProvisioningError):
    """Raised when a project or a provider folder reference does not exist."""

    status_code = 404


class PreconditionError(ProvisioningError):
    """Raised when a project lacks the storage state an operation needs."""

    status_code = 400


class InvalidRequestError(ProvisioningError):
    """Raised for malformed request input (missing fields, bad dates)."""

    status_code = 400


class CodeExhaustedError(ProvisioningError):
    """Raised when every candidate project code up to the ceiling is taken."""

    status_code = 409


class ProviderConflictError(ProvisioningError):
    """
    Provider reported that a resource already exists.

    Providers resolve this locally and treat it as success; it never
    reaches the route boundary.
    """

    status_code = 409

    def __init__(self, message: str, provider: Optional[str] = None):
        self.provider = provider
        super().__init__(message)


class ProviderError(ProvisioningError):
    """Any other provider failure. The raw provider message is preserved."""

    status_code = 500

    def __init__(
        self,
        message: str,
        provider: Optional[str] = None,
        raw_message: Optional[str] = None,
        provider_status: Optional[int] = None,
    ):
        self.provider = provider
        self.raw_message = raw_message
        self.provider_status = provider_status
        super().__init__(message)
