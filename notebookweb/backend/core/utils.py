"""
Core Utilities.

Shared utility functions used across the backend.
"""

import time
from datetime import datetime, timezone


def utc_now() -> datetime:
    """
    Return current UTC time as timezone-naive datetime.

    All datetime values in the application should be timezone-naive
    and assumed to be UTC.
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)


def epoch_seconds() -> int:
    """Current time as integer seconds since the epoch (token expiry unit)."""
    return int(time.time())


def format_note_date(value: datetime) -> str:
    """Render a note timestamp as e.g. 'Mar 5, 2025'."""
    return f"{value:%b} {value.day}, {value.year}"
