"""
Credentials Management
======================
Resolves provider secrets from the environment, optionally Fernet-encrypted.

Any secret variable may be supplied either in plain text (``DROPBOX_APP_SECRET``)
or encrypted (``DROPBOX_APP_SECRET_ENCRYPTED``). Encrypted values are
decrypted with the key in ``CREDENTIALS_ENCRYPTION_KEY``.

To generate a new key:
    from cryptography.fernet import Fernet
    print(Fernet.generate_key().decode())

Or use: generate_fernet_key() from this module.
"""

import os
from typing import Dict, Any, Mapping, Optional
from cryptography.fernet import Fernet

from ..errors import ConfigurationError

ENCRYPTION_KEY_ENV_VAR = "CREDENTIALS_ENCRYPTION_KEY"
ENCRYPTED_SUFFIX = "_ENCRYPTED"


def generate_fernet_key() -> str:
    """
    Generate a new Fernet encryption key.

    Add the generated key to the function environment as:
        CREDENTIALS_ENCRYPTION_KEY="generated-key-here"

    Returns:
        Base64-encoded Fernet key string
    """
    return Fernet.generate_key().decode()


def get_encryption_key(environ: Optional[Mapping[str, str]] = None) -> str:
    """
    Get the credentials encryption key from the environment.

    Raises:
        ConfigurationError: If no key is configured
    """
    env = os.environ if environ is None else environ
    encryption_key = env.get(ENCRYPTION_KEY_ENV_VAR)

    if not encryption_key:
        encrypted_vars = sorted(k for k in env if k.endswith(ENCRYPTED_SUFFIX))
        raise ConfigurationError(
            f"{ENCRYPTION_KEY_ENV_VAR} is required to decrypt: {encrypted_vars}",
            missing=[ENCRYPTION_KEY_ENV_VAR],
        )

    return encryption_key


def decrypt_credential(encrypted_value: str, encryption_key: str) -> str:
    """
    Decrypt a single encrypted credential value.

    Args:
        encrypted_value: Fernet-encrypted string
        encryption_key: Fernet key string

    Returns:
        Decrypted string value

    Raises:
        ValueError: If decryption fails
    """
    try:
        fernet = Fernet(encryption_key.encode())
        decrypted = fernet.decrypt(encrypted_value.encode()).decode()
        return decrypted
    except Exception as e:
        raise ValueError(f"Failed to decrypt credential: {e}")


def read_secret(name: str, environ: Optional[Mapping[str, str]] = None) -> Optional[str]:
    """
    Read a secret by variable name, preferring the plain value.

    Falls back to ``<name>_ENCRYPTED`` and decrypts it.

    Returns:
        The secret, or None if neither variable is set

    Raises:
        ConfigurationError: If the encrypted value cannot be decrypted
    """
    env = os.environ if environ is None else environ

    value = env.get(name)
    if value:
        return value

    encrypted_value = env.get(f"{name}{ENCRYPTED_SUFFIX}")
    if not encrypted_value:
        return None

    try:
        return decrypt_credential(encrypted_value, get_encryption_key(env))
    except ValueError as e:
        raise ConfigurationError(f"Failed to decrypt {name}{ENCRYPTED_SUFFIX}: {e}")


def mask_credentials(data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Create a masked copy of data for safe logging.

    Args:
        data: Dictionary potentially containing sensitive values

    Returns:
        Dictionary with sensitive values masked
    """
    if not isinstance(data, dict):
        return data

    masked = data.copy()
    sensitive_fields = [
        'app_key', 'app_secret', 'refresh_token',
        'private_key', 'access_token', 'client_secret',
    ]

    for field in sensitive_fields:
        if field in masked and masked[field]:
            value = masked[field]
            if isinstance(value, str) and len(value) > 8:
                masked[field] = f"{value[:4]}...{value[-4:]}"
            else:
                masked[field] = "***"

    return masked
