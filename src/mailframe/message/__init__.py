"""Single-message parsing, diagnostics, and serialization."""

from __future__ import annotations

from mailframe.message.body import BodySource
from mailframe.message.codec import fold_headers, unfold_headers
from mailframe.message.diagnostics import MessageWarning, compute_warnings
from mailframe.message.entity import EmailMessage
from mailframe.message.errors import (
    BodyConsumedError,
    MessageError,
    MessageParseError,
    SinkWriteError,
    UnsupportedBodyError,
)
from mailframe.message.headers import HeaderTable

__all__ = [
    "BodyConsumedError",
    "BodySource",
    "EmailMessage",
    "HeaderTable",
    "MessageError",
    "MessageParseError",
    "MessageWarning",
    "SinkWriteError",
    "UnsupportedBodyError",
    "compute_warnings",
    "fold_headers",
    "unfold_headers",
]
