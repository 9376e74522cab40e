"""Date header parsing."""

from __future__ import annotations

from datetime import datetime
from email.utils import parsedate_to_datetime


def parse_date(value: str | None) -> datetime | None:
    """Parse a Date header value.

    RFC 5322 dates are tried first, then ISO-8601 timestamps.

    Args:
        value: Raw header value.

    Returns:
        Parsed datetime, or None if the value is empty or unparseable.
    """
    if value is None:
        return None
    text = value.strip()
    if not text:
        return None
    try:
        return parsedate_to_datetime(text)
    except (TypeError, ValueError, IndexError):
        pass
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None
