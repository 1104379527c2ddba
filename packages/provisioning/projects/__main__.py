"""
Provisioning Projects Function
==============================
Entry point for project creation requests from the admin CMS.

Routes:
    POST /admin/projects          {eventName, eventDate, provider?}
    POST /admin/projects/dropbox  {eventName, eventDate}
"""

from typing import Dict, Any

# Import from VX Provisioning Core shared library
from provisioning import handle_request


def main(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Create an event project: allocate its code, provision the folder tree
    on the chosen provider and persist the project record.
    """
    return handle_request(event, context)
