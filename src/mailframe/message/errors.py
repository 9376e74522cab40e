"""Errors raised while parsing, reading, or writing messages."""

from __future__ import annotations


class MessageError(Exception):
    """Base class for message errors."""


class MessageParseError(MessageError, ValueError):
    """Raised when raw content cannot be split into headers and body."""


class UnsupportedBodyError(MessageError, TypeError):
    """Raised when a message has no body in a form that can be written."""


class BodyConsumedError(MessageError, RuntimeError):
    """Raised when a single-pass body stream is read a second time."""


class SinkWriteError(MessageError, OSError):
    """Raised when the output sink rejects a write."""
