"""
Utilities module - Path handling and slug helpers.
"""

from .path_utils import (
    normalize_dropbox_path,
    join_dropbox_path,
    slugify,
)

__all__ = [
    "normalize_dropbox_path",
    "join_dropbox_path",
    "slugify",
]
