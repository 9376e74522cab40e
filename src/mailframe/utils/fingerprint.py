"""Message identity keys for deduplication."""

from __future__ import annotations

import hashlib
from datetime import UTC, datetime
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from mailframe.message.headers import HeaderTable

# A received trace shorter than this is too generic to identify a message.
MIN_RECEIVED_KEY_LENGTH = 128


def sha256_hex(data: bytes) -> str:
    """Return the SHA-256 hex digest for raw bytes.

    Args:
        data: Input bytes.

    Returns:
        Hex-encoded SHA-256 digest.
    """
    return hashlib.sha256(data).hexdigest()


def longest_value(values: str | list[str] | None) -> str:
    """Return the longest candidate, keeping the first one on ties.

    Args:
        values: A single value, a list of candidates, or None.

    Returns:
        The selected value, or an empty string.
    """
    if values is None:
        return ""
    if isinstance(values, str):
        return values
    best = ""
    for candidate in values:
        if len(candidate) > len(best):
            best = candidate
    return best


def identity_source(
    *,
    message_id: str,
    headers: HeaderTable,
    date: datetime | None,
) -> str | None:
    """Choose the string a message identity key is hashed from.

    Priority: the message-id, then a long first received trace, then the date
    with the subject (or, failing that, the return-path).

    Args:
        message_id: Selected Message-ID value (may be empty).
        headers: Parsed headers.
        date: First parseable Date header, if any; a naive value is taken as UTC.

    Returns:
        The hash source, or None when the identity is indeterminate.
    """
    if message_id:
        return message_id

    received = headers.first("received")
    if received is not None and len(received) > MIN_RECEIVED_KEY_LENGTH:
        return received

    if date is not None:
        if date.tzinfo is None:
            date = date.replace(tzinfo=UTC)
        for field in ("subject", "return-path"):
            value = headers.first(field)
            if value:
                return f"{date.isoformat()} {value}"
    return None


def compute_identity_key(
    *,
    message_id: str,
    headers: HeaderTable,
    date: datetime | None,
) -> str | None:
    """Compute a stable deduplication key for a message.

    Args:
        message_id: Selected Message-ID value (may be empty).
        headers: Parsed headers.
        date: First parseable Date header, if any.

    Returns:
        SHA-256 hex digest of the identity source, or None if indeterminate.
    """
    source = identity_source(message_id=message_id, headers=headers, date=date)
    if source is None:
        return None
    return sha256_hex(source.encode("utf-8", errors="surrogateescape"))
