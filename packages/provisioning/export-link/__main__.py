"""
Provisioning Export Link Function
=================================
Entry point for export link requests from the admin CMS.

Routes:
    POST   /admin/projects/{code}/link            Google Drive get-or-create
    DELETE /admin/projects/{code}/link            Google Drive revoke
    POST   /admin/projects/{code}/link/dropbox    Dropbox get-or-create
    DELETE /admin/projects/{code}/link/dropbox    Dropbox revoke
"""

from typing import Dict, Any

# Import from VX Provisioning Core shared library
from provisioning import handle_request


def main(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """Create, reuse or revoke the public link on a project's export folder."""
    return handle_request(event, context)
