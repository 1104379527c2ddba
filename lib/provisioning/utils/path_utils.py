"""
Path Utilities
==============
Dropbox path normalization and slug generation for project names.
"""

import re
import unicodedata


def normalize_dropbox_path(path: str) -> str:
    """
    Normalize a Dropbox display path.

    - Converts backslashes to forward slashes
    - Ensures leading slash
    - Removes duplicate slashes
    - Removes trailing slash (unless root)

    Case is preserved: folders are created with the display name the
    caller asked for, and Dropbox compares paths case-insensitively.

    Args:
        path: Raw path string

    Returns:
        Normalized path string
    """
    if not path:
        return path

    # Replace backslashes with forward slashes
    normalized = path.replace('\\', '/')

    # Ensure leading slash
    if not normalized.startswith('/'):
        normalized = '/' + normalized

    # Remove duplicate slashes
    normalized = re.sub(r'/{2,}', '/', normalized)

    # Remove trailing slash unless it's the root
    if len(normalized) > 1 and normalized.endswith('/'):
        normalized = normalized[:-1]

    return normalized


def join_dropbox_path(*parts: str) -> str:
    """Join path segments into a single normalized Dropbox path."""
    joined = '/'.join(part.strip('/\\') for part in parts if part and part.strip('/\\'))
    return normalize_dropbox_path(joined) if joined else '/'


def slugify(text: str, max_length: int = 40) -> str:
    """
    Turn free text into a lowercase, URL- and filesystem-safe slug.

    - Strips accents ("Boda Ana Núñez" -> "boda-ana-nunez")
    - Replaces runs of other characters with a single hyphen
    - Trims hyphens from start/end
    - Limits length

    Args:
        text: Raw text
        max_length: Maximum slug length

    Returns:
        Slug string (empty if nothing usable remains)
    """
    if not text or not isinstance(text, str):
        return ""

    decomposed = unicodedata.normalize('NFKD', text)
    ascii_text = decomposed.encode('ascii', 'ignore').decode('ascii')

    slug = re.sub(r'[^a-z0-9]+', '-', ascii_text.lower()).strip('-')

    return slug[:max_length].rstrip('-')
