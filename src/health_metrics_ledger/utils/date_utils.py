"""
Date and timestamp utilities.

Canonical month keys for time-series ordering and timezone-aware
timestamps for ingestion events.
"""

from datetime import datetime

import pytz


def normalize_date(raw: str) -> str:
    """
    Normalize a date string to a ``YYYY-MM`` month key.

    ``MM/DD/YYYY`` and ``MM/DD/YY`` are converted (two-digit years are
    placed in the 2000s, the day is dropped). Anything that does not split
    into exactly three ``/``-separated parts is returned unchanged.

    Args:
        raw: Date string as found in the source file.

    Returns:
        Month key, or the input unchanged.
    """
    parts = raw.split("/")
    if len(parts) != 3:
        return raw

    month = parts[0].strip().zfill(2)
    year = parts[2].strip()
    if len(year) == 2:
        year = f"20{year}"

    return f"{year}-{month}"


def now_in_timezone(timezone_str: str = "UTC") -> datetime:
    """
    Get the current time as a timezone-aware datetime.

    Args:
        timezone_str: Timezone string (e.g., "America/Chicago").

    Returns:
        Timezone-aware datetime object.
    """
    return datetime.now(pytz.utc).astimezone(pytz.timezone(timezone_str))
