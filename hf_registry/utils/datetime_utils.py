"""
Common date/time utility functions for consistent date handling across the registry

Storage: clinical dates (admission, discharge, appointment) are calendar dates
serialized as ISO 8601 "YYYY-MM-DD" strings. "Today" is the UTC calendar date.
"""

from datetime import date, datetime, timezone
from typing import Optional


def as_utc(dt: datetime) -> datetime:
    """
    Convert dt to tz-aware UTC.
    If dt is naive, we treat it as UTC.
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def utc_now() -> datetime:
    """
    Get current UTC datetime.
    """
    return datetime.now(timezone.utc)


def utc_today() -> date:
    """
    Get the current UTC calendar date.
    """
    return utc_now().date()


def parse_iso_date(value: object) -> Optional[date]:
    """
    Parse a form/backup date value to a calendar date.

    Accepts date objects, "YYYY-MM-DD" strings and full ISO datetimes
    (with or without a 'Z' suffix). Blank strings mean "no date".

    Raises:
        ValueError: if the string is not ISO 8601
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return as_utc(value).date()
    if isinstance(value, date):
        return value

    text = str(value).strip()
    if not text:
        return None
    if len(text) == 10:
        return date.fromisoformat(text)

    # Replace 'Z' with '+00:00' for consistent parsing
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return as_utc(datetime.fromisoformat(text)).date()


def days_between(a: date, b: date) -> int:
    """Absolute number of whole days between two calendar dates."""
    return abs((a - b).days)
