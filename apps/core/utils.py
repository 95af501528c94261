"""
Utility functions for MediCRM Backend

Common helpers used across selectors and views.
"""
from .constants import UNKNOWN_DISPLAY_NAME


def format_full_name(first_name: str | None, last_name: str | None) -> str:
    """
    Format first and last name into a full name string.

    Args:
        first_name: The first name (can be None)
        last_name: The last name (can be None)

    Returns:
        Formatted full name with whitespace trimmed
    """
    return f"{first_name or ''} {last_name or ''}".strip()


def display_name_for(profile_row: dict | None, fallback: str = UNKNOWN_DISPLAY_NAME) -> str:
    """
    Resolve the display name for a profile values() row.

    Prefers display_name, then first/last name, then email, then the fallback.
    """
    if not profile_row:
        return fallback
    if profile_row.get('display_name'):
        return profile_row['display_name']
    full = format_full_name(profile_row.get('first_name'), profile_row.get('last_name'))
    return full or profile_row.get('email') or fallback
