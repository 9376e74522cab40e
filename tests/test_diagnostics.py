"""Tests for message warning flags."""

from __future__ import annotations

from mailframe.message.diagnostics import MessageWarning, compute_warnings, warning_names
from mailframe.message.headers import HeaderTable

_COMPLETE = [
    "Received: from mx.example.com by mail.example.net",
    "Message-ID: <abc@example.com>",
    "Subject: Hello",
    "From: sender@example.com",
    "To: rcpt@example.com",
]

_DATE_FLAGS = MessageWarning.NO_DATE | MessageWarning.MULTIPLE_DATES | MessageWarning.NO_VALID_DATE


def _warnings(lines: list[str]) -> MessageWarning:
    return compute_warnings(HeaderTable.from_lines(lines))


def test_well_formed_message_has_no_warnings() -> None:
    """A complete header block produces no warnings."""
    assert _warnings([*_COMPLETE, "Date: Tue, 1 Jan 2019 10:00:00 +0000"]) == MessageWarning.NONE


def test_missing_date_sets_only_no_date() -> None:
    """No Date header sets NO_DATE and no other date flag."""
    flags = _warnings(_COMPLETE)
    assert flags == MessageWarning.NO_DATE
    assert flags & _DATE_FLAGS == MessageWarning.NO_DATE


def test_duplicate_dates_with_one_valid() -> None:
    """A parseable candidate clears NO_VALID_DATE but keeps MULTIPLE_DATES."""
    flags = _warnings([*_COMPLETE, "Date: not a date", "Date: Tue, 1 Jan 2019 10:00:00 +0000"])
    assert MessageWarning.MULTIPLE_DATES in flags
    assert MessageWarning.NO_VALID_DATE not in flags


def test_duplicate_dates_all_invalid() -> None:
    """Without any parseable candidate both duplicate and invalid flags are set."""
    flags = _warnings([*_COMPLETE, "Date: garbage", "Date: more garbage"])
    assert flags == MessageWarning.MULTIPLE_DATES | MessageWarning.NO_VALID_DATE


def test_single_invalid_date() -> None:
    """An unparseable single Date sets NO_VALID_DATE only."""
    assert _warnings([*_COMPLETE, "Date: yesterday-ish"]) == MessageWarning.NO_VALID_DATE


def test_empty_header_block_sets_every_missing_flag() -> None:
    """An empty header block is missing everything."""
    assert _warnings([]) == (
        MessageWarning.NO_MESSAGE_ID
        | MessageWarning.NO_SUBJECT
        | MessageWarning.NO_FROM
        | MessageWarning.NO_RECEIVED
        | MessageWarning.NO_DATE
        | MessageWarning.NO_TO_ADDRESS
    )


def test_duplicate_identity_fields() -> None:
    """Repeated Message-ID, Subject, and From are flagged."""
    flags = _warnings(
        [
            *_COMPLETE,
            "Message-ID: <other@example.com>",
            "Subject: Again",
            "From: other@example.com",
            "Date: Tue, 1 Jan 2019 10:00:00 +0000",
        ],
    )
    assert flags == (
        MessageWarning.MULTIPLE_MESSAGE_IDS | MessageWarning.MULTIPLE_SUBJECTS | MessageWarning.MULTIPLE_FROM
    )


def test_delivered_to_counts_as_recipient() -> None:
    """Delivered-To satisfies the recipient check when To is absent."""
    lines = [line for line in _COMPLETE if not line.startswith("To:")]
    assert MessageWarning.NO_TO_ADDRESS in _warnings(lines)
    assert MessageWarning.NO_TO_ADDRESS not in _warnings([*lines, "Delivered-To: me@example.com"])


def test_blank_received_values_count_as_missing() -> None:
    """Received headers with empty values do not count as a trace."""
    lines = [line for line in _COMPLETE if not line.startswith("Received:")]
    assert MessageWarning.NO_RECEIVED in _warnings([*lines, "Received:", "Received: "])


def test_custom_date_parser_is_used() -> None:
    """The date capability is injectable."""
    table = HeaderTable.from_lines([*_COMPLETE, "Date: anything"])
    assert compute_warnings(table, date_parser=lambda _value: None) == MessageWarning.NO_VALID_DATE


def test_warning_names() -> None:
    """warning_names lists set flags in bit order."""
    flags = MessageWarning.NO_DATE | MessageWarning.NO_MESSAGE_ID
    assert warning_names(flags) == ["NO_MESSAGE_ID", "NO_DATE"]
    assert warning_names(MessageWarning.NONE) == []
