"""
API module - Admin route handlers for the serverless functions.
"""

from .handlers import handle_request, VERSION

__all__ = [
    "handle_request",
    "VERSION",
]
