"""
Project Codes
=============
Short, human-readable identifiers for event projects.

Format: ``VX{index:03d}_{slug}_{YYYY-MM-DD}``, e.g. ``VX001_boda-ana_2025-06-15``.
"""

from datetime import date, datetime
from typing import Callable, Union

from ..config.constants import MAX_PROJECT_CODE_INDEX, MAX_SLUG_LENGTH, PROJECT_CODE_PREFIX
from ..errors import CodeExhaustedError, InvalidRequestError
from ..utils.path_utils import slugify

EventDate = Union[str, date, datetime]


def normalize_event_date(event_date: EventDate) -> str:
    """
    Return the event date as ``YYYY-MM-DD``.

    Accepts date/datetime objects or ISO strings (a time part is ignored).

    Raises:
        InvalidRequestError: If the date cannot be parsed
    """
    if isinstance(event_date, datetime):
        return event_date.date().isoformat()
    if isinstance(event_date, date):
        return event_date.isoformat()

    if not isinstance(event_date, str) or not event_date.strip():
        raise InvalidRequestError("eventDate is required (YYYY-MM-DD)")

    try:
        return date.fromisoformat(event_date.strip()[:10]).isoformat()
    except ValueError:
        raise InvalidRequestError(f"Invalid eventDate: '{event_date}' (expected YYYY-MM-DD)")


def make_project_code(event_name: str, event_date: EventDate, index: int) -> str:
    """
    Build the project code for an (event name, date, index) triple.

    Pure and deterministic.

    Raises:
        InvalidRequestError: On an empty name, bad date or out-of-range index
    """
    if not isinstance(event_name, str) or not event_name.strip():
        raise InvalidRequestError("eventName is required")

    if not isinstance(index, int) or not 1 <= index <= MAX_PROJECT_CODE_INDEX:
        raise InvalidRequestError(
            f"Project code index must be between 1 and {MAX_PROJECT_CODE_INDEX}"
        )

    slug = slugify(event_name, max_length=MAX_SLUG_LENGTH) or "project"
    return f"{PROJECT_CODE_PREFIX}{index:03d}_{slug}_{normalize_event_date(event_date)}"


def allocate_project_code(
    event_name: str,
    event_date: EventDate,
    exists: Callable[[str], bool],
    max_index: int = MAX_PROJECT_CODE_INDEX,
) -> str:
    """
    Find the first free project code, starting at index 1.

    Args:
        event_name: Event name
        event_date: Event date
        exists: Returns True if a code is already taken
        max_index: Highest index tried

    Raises:
        CodeExhaustedError: If every index up to max_index is taken
    """
    for index in range(1, max_index + 1):
        code = make_project_code(event_name, event_date, index)
        if not exists(code):
            return code
        print(f"Project code taken: {code}")

    raise CodeExhaustedError(
        f"No free project code for '{event_name}' on {normalize_event_date(event_date)} "
        f"after {max_index} attempts"
    )
