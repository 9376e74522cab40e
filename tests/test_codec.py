"""Tests for header unfolding and folding."""

from __future__ import annotations

from mailframe.message.codec import (
    FOLD_WIDTH,
    fold_headers,
    fold_line,
    split_header_lines,
    unfold_headers,
)


def test_split_header_lines_handles_all_terminators() -> None:
    """Raw header text should split on CRLF, CR, and LF."""
    assert split_header_lines("A: 1\r\nB: 2\rC: 3\nD: 4") == ["A: 1", "B: 2", "C: 3", "D: 4"]


def test_unfold_long_line_joins_without_space() -> None:
    """A line already at the fold width is joined to its continuation directly."""
    first = "Subject: " + "a" * 80
    assert unfold_headers([first, " continued"]) == [first + "continued"]


def test_unfold_short_line_inserts_single_space() -> None:
    """A short line gets exactly one space before its continuation."""
    assert unfold_headers(["Subject: short", " continued"]) == ["Subject: short continued"]


def test_unfold_line_ending_in_space_keeps_it() -> None:
    """A trailing space already separates the continuation."""
    assert unfold_headers(["Subject: short ", "\t  continued"]) == ["Subject: short continued"]


def test_unfold_skips_blank_lines_and_joins_several_continuations() -> None:
    """Blank lines are dropped and every continuation is merged."""
    lines = ["To: a@example.com,", " b@example.com,", "\tc@example.com", "", "   ", "From: x@example.com"]
    assert unfold_headers(lines) == [
        "To: a@example.com, b@example.com, c@example.com",
        "From: x@example.com",
    ]


def test_fold_short_lines_untouched() -> None:
    """Lines within the fold width pass through unchanged."""
    lines = ["Subject: hello", "X-Long: " + "z" * (FOLD_WIDTH - 8)]
    assert fold_headers(lines) == lines
    assert fold_headers(unfold_headers(lines)) == lines


def test_fold_hard_breaks_without_delimiters() -> None:
    """A line without break points is cut at exactly the fold width."""
    folded = fold_line("a" * 100)
    assert folded == ["a" * 78, "    " + "a" * 22]
    assert len(folded[1]) == 26


def test_fold_breaks_after_space_and_keeps_it() -> None:
    """Breaking on whitespace leaves the space at the end of the first line."""
    line = "Subject: " + "x" * 60 + " " + "y" * 30
    assert fold_line(line) == ["Subject: " + "x" * 60 + " ", "    " + "y" * 30]


def test_fold_breaks_before_with() -> None:
    """' with ' is a break-before delimiter; the leading space stays on the first line."""
    line = "Received: " + "a" * 62 + " with " + "b" * 20
    assert fold_line(line) == ["Received: " + "a" * 62 + " ", "    with " + "b" * 20]


def test_fold_delimiters_match_case_insensitively() -> None:
    """Upper-case delimiters are found like lower-case ones."""
    line = "Received: " + "a" * 62 + " WITH " + "b" * 20
    assert fold_line(line) == ["Received: " + "a" * 62 + " ", "    WITH " + "b" * 20]


def test_fold_prefers_rightmost_break() -> None:
    """The break point closest to the fold width wins."""
    line = "Received: " + "a" * 50 + " with " + "b" * 40
    assert fold_line(line) == ["Received: " + "a" * 50 + " with ", "    " + "b" * 40]


def test_fold_all_lines_within_width() -> None:
    """Every folded line fits in the fold width."""
    line = "To: " + ", ".join(f"user{i}@example.com" for i in range(20))
    folded = fold_line(line)
    assert len(folded) > 1
    assert all(len(part) <= FOLD_WIDTH for part in folded)
    assert all(part.startswith("    ") for part in folded[1:])


def test_refolding_is_idempotent() -> None:
    """Unfolding then refolding a folded block reproduces it byte for byte."""
    lines = [
        "a" * 100,
        "Subject: " + "x" * 60 + " " + "y" * 30,
        "Received: " + "a" * 62 + " with " + "b" * 20,
        "To: " + ", ".join(f"user{i}@example.com" for i in range(12)),
    ]
    folded = fold_headers(lines)
    assert fold_headers(unfold_headers(folded)) == folded
