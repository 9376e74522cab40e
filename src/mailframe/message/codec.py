"""RFC 5322 header unfolding and folding.

Folding long header lines has no single correct algorithm once the original
line breaks are gone, so both directions use a fixed heuristic:

* ``unfold_headers`` joins continuation lines back onto their logical line,
  inserting a single space unless the line already reached the fold width or
  already ends with a space.
* ``fold_headers`` wraps logical lines to ``FOLD_WIDTH`` columns, preferring the
  rightmost break point from ``BREAK_DELIMITERS`` and hard-breaking when none
  is usable. Continuations are indented with ``CONTINUATION_INDENT``.
"""

from __future__ import annotations

import re
from collections.abc import Iterable

FOLD_WIDTH = 78
CONTINUATION_INDENT = "    "
MIN_BREAK = 4

_LINE_SPLIT_RE = re.compile(r"\r\n|\r|\n")
_FOLDING_WHITESPACE = (" ", "\t")

# (delimiter, break_after). Order matters: on equal break positions the
# delimiter checked first wins because later ones must be strictly larger.
BREAK_DELIMITERS: tuple[tuple[str, bool], ...] = (
    (" with ", False),
    (" on ", False),
    ("; ", True),
    ("(", False),
    (")", True),
    (",", True),
    (" ", True),
    (";", True),
    (">", True),
)


def split_header_lines(raw_header: str) -> list[str]:
    """Split raw header text on CRLF, CR, or LF boundaries."""
    return _LINE_SPLIT_RE.split(raw_header)


def unfold_headers(lines: Iterable[str]) -> list[str]:
    """Unfold physical header lines into logical ``name: value`` lines.

    Args:
        lines: Raw header lines, already split on line terminators.

    Returns:
        Logical header lines. Blank lines are dropped.
    """
    raw = list(lines)
    unfolded: list[str] = []
    count = len(raw)
    idx = 0
    while idx < count:
        line = raw[idx]
        if not line.strip():
            idx += 1
            continue
        while idx + 1 < count and raw[idx + 1].startswith(_FOLDING_WHITESPACE):
            idx += 1
            continuation = raw[idx].lstrip()
            if len(line) >= FOLD_WIDTH or line.endswith(" "):
                line += continuation
            else:
                line += " " + continuation
        unfolded.append(line)
        idx += 1
    return unfolded


def _best_break(chunk: str) -> int:
    """Return the preferred break index inside ``chunk``, or ``MIN_BREAK`` if none."""
    lowered = chunk.lower()
    best = MIN_BREAK
    for delimiter, break_after in BREAK_DELIMITERS:
        pos = lowered.rfind(delimiter)
        if pos == -1:
            continue
        if break_after:
            pos += len(delimiter)
        if best < pos < FOLD_WIDTH:
            best = pos
    return best


def fold_line(line: str) -> list[str]:
    """Fold a single logical header line to ``FOLD_WIDTH`` columns.

    Args:
        line: Logical header line (or any long text).

    Returns:
        One or more physical lines; all but the first start with the
        continuation indent.
    """
    out: list[str] = []
    remaining = line
    while len(remaining) > FOLD_WIDTH:
        cut = _best_break(remaining[:FOLD_WIDTH])
        if cut > MIN_BREAK:
            # Keep the whitespace at the end of the current line.
            if remaining[cut] == " ":
                cut += 1
            out.append(remaining[:cut])
            remaining = CONTINUATION_INDENT + remaining[cut:].lstrip()
        else:
            out.append(remaining[:FOLD_WIDTH])
            remaining = CONTINUATION_INDENT + remaining[FOLD_WIDTH:]
    out.append(remaining)
    return out


def fold_headers(lines: Iterable[str]) -> list[str]:
    """Fold logical header lines for transmission.

    Args:
        lines: Logical ``name: value`` lines.

    Returns:
        Physical lines, each at most ``FOLD_WIDTH`` characters long.
    """
    folded: list[str] = []
    for line in lines:
        folded.extend(fold_line(line))
    return folded
