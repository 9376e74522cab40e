"""Structural warnings for suspicious but parseable messages."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
from enum import IntFlag

from mailframe.message.headers import HeaderTable
from mailframe.utils.dates import parse_date

DateParser = Callable[[str], datetime | None]


class MessageWarning(IntFlag):
    """Bitset of well-formedness warnings computed once per message."""

    NONE = 0
    NO_MESSAGE_ID = 1
    MULTIPLE_MESSAGE_IDS = 2
    NO_SUBJECT = 4
    MULTIPLE_SUBJECTS = 8
    NO_FROM = 16
    MULTIPLE_FROM = 32
    NO_RECEIVED = 64
    NO_DATE = 128
    MULTIPLE_DATES = 256
    NO_VALID_DATE = 512
    NO_TO_ADDRESS = 1024


def warning_names(flags: MessageWarning) -> list[str]:
    """Return the names of the set bits, lowest bit first."""
    return [member.name for member in MessageWarning if member and member in flags and member.name]


def _presence_flags(
    headers: HeaderTable,
    name: str,
    *,
    missing: MessageWarning,
    duplicated: MessageWarning,
) -> MessageWarning:
    if name not in headers:
        return missing
    if isinstance(headers[name], list):
        return duplicated
    return MessageWarning.NONE


def compute_warnings(headers: HeaderTable, *, date_parser: DateParser = parse_date) -> MessageWarning:
    """Compute the warning bitset for a freshly parsed header table.

    Args:
        headers: Parsed headers.
        date_parser: Callable returning a datetime, or None for an invalid date.

    Returns:
        Combined warning flags.
    """
    flags = MessageWarning.NONE
    flags |= _presence_flags(
        headers,
        "message-id",
        missing=MessageWarning.NO_MESSAGE_ID,
        duplicated=MessageWarning.MULTIPLE_MESSAGE_IDS,
    )
    flags |= _presence_flags(
        headers,
        "subject",
        missing=MessageWarning.NO_SUBJECT,
        duplicated=MessageWarning.MULTIPLE_SUBJECTS,
    )
    flags |= _presence_flags(
        headers,
        "from",
        missing=MessageWarning.NO_FROM,
        duplicated=MessageWarning.MULTIPLE_FROM,
    )

    if not "".join(headers.get_all("received")):
        flags |= MessageWarning.NO_RECEIVED

    if "date" not in headers:
        flags |= MessageWarning.NO_DATE
    else:
        date = headers["date"]
        if isinstance(date, list):
            flags |= MessageWarning.MULTIPLE_DATES | MessageWarning.NO_VALID_DATE
            if any(date_parser(candidate) is not None for candidate in date):
                flags &= ~MessageWarning.NO_VALID_DATE
        elif date_parser(date) is None:
            flags |= MessageWarning.NO_VALID_DATE

    if "to" not in headers and "delivered-to" not in headers:
        flags |= MessageWarning.NO_TO_ADDRESS

    return flags
