"""Parse, inspect, modify, and re-serialize a single email message."""

from __future__ import annotations

import logging
import re
from datetime import datetime
from typing import IO

from mailframe.message.body import DEFAULT_CHUNK_SIZE, BodySource, Sink, SinkWriter
from mailframe.message.codec import fold_headers, split_header_lines, unfold_headers
from mailframe.message.diagnostics import DateParser, MessageWarning, compute_warnings
from mailframe.message.errors import MessageParseError, UnsupportedBodyError
from mailframe.message.headers import HeaderTable
from mailframe.models.types import MessageRef
from mailframe.storage.mailbox import MailboxStore
from mailframe.utils.dates import parse_date
from mailframe.utils.fingerprint import compute_identity_key, longest_value
from mailframe.utils.slots import FrozenSlot

_HEADER_BODY_SPLIT_RE = re.compile(r"\r\n\r\n|\r\r|\n\n")

logger = logging.getLogger(__name__)


class EmailMessage:
    """A single message built from text, a stream, or a mailbox store reference.

    Derived fields (headers, warnings, message-id, subject, size) are computed
    on first access and then frozen. The header table stays mutable through
    ``add_header``, but nothing already derived is recomputed.
    """

    def __init__(
        self,
        *,
        raw_header: str | None = None,
        body: BodySource | None = None,
        store: MailboxStore | None = None,
        ref: MessageRef | None = None,
        date_parser: DateParser = parse_date,
    ) -> None:
        """Initialize a message from already separated parts.

        Prefer ``from_string``, ``from_stream``, or ``from_store``.

        Args:
            raw_header: Raw header block, or None to fetch it from ``store``.
            body: Message body, if available.
            store: Remote store the message lives in.
            ref: Location of the message inside ``store``.
            date_parser: Date capability used for diagnostics and ``date()``.
        """
        self._raw_header: FrozenSlot[str] = FrozenSlot("raw_header")
        if raw_header is not None:
            self._raw_header.set(raw_header)
        self._body = body
        self._store = store
        self._ref = ref
        self._date_parser = date_parser

        self._headers: FrozenSlot[HeaderTable] = FrozenSlot("headers")
        self._warnings: FrozenSlot[MessageWarning] = FrozenSlot("warnings")
        self._message_id: FrozenSlot[str] = FrozenSlot("message_id")
        self._subject: FrozenSlot[str] = FrozenSlot("subject")
        self._size: FrozenSlot[int] = FrozenSlot("size")

    @classmethod
    def from_string(
        cls,
        content: str | bytes,
        *,
        date_parser: DateParser = parse_date,
    ) -> EmailMessage:
        """Build a message from a complete raw message.

        Args:
            content: Raw message text; bytes are decoded as UTF-8.
            date_parser: Date capability used for diagnostics and ``date()``.

        Returns:
            A buffer-backed message.

        Raises:
            MessageParseError: If there is no blank line between headers and body.
        """
        if isinstance(content, bytes):
            content = content.decode("utf-8", errors="surrogateescape")
        if not isinstance(content, str):
            raise MessageParseError(f"Can't create a message from {type(content).__name__}")
        parts = _HEADER_BODY_SPLIT_RE.split(content, maxsplit=1)
        if len(parts) != 2:
            raise MessageParseError("Failed to parse message content; missing headers or body.")
        raw_header, body = parts
        return cls(raw_header=raw_header, body=BodySource.from_bytes(body), date_parser=date_parser)

    @classmethod
    def from_stream(
        cls,
        stream: IO[bytes],
        *,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        date_parser: DateParser = parse_date,
    ) -> EmailMessage:
        """Build a message from a binary stream without buffering the body.

        Header lines are read up to the first empty line; the rest of the
        stream is kept, unread, as the body.

        Args:
            stream: Readable binary stream positioned at the first header line.
            chunk_size: Bytes pulled per read when the body is consumed.
            date_parser: Date capability used for diagnostics and ``date()``.

        Returns:
            A stream-backed message.
        """
        lines: list[str] = []
        while True:
            raw_line = stream.readline()
            if not raw_line:
                break
            if isinstance(raw_line, bytes):
                raw_line = raw_line.decode("utf-8", errors="surrogateescape")
            line = raw_line.rstrip("\r\n")
            if not line:
                break
            lines.append(line)
        return cls(
            raw_header="\n".join(lines),
            body=BodySource.from_stream(stream, chunk_size=chunk_size),
            date_parser=date_parser,
        )

    @classmethod
    def from_store(
        cls,
        store: MailboxStore,
        ref: MessageRef,
        *,
        date_parser: DateParser = parse_date,
    ) -> EmailMessage:
        """Build a message whose headers are fetched from ``store`` on first use.

        Args:
            store: Remote mailbox store.
            ref: Mailbox path and UID of the message.
            date_parser: Date capability used for diagnostics and ``date()``.

        Returns:
            A store-backed message without a body.
        """
        return cls(store=store, ref=ref, date_parser=date_parser)

    @property
    def ref(self) -> MessageRef | None:
        """Return the store location of this message, if any."""
        return self._ref

    @property
    def body(self) -> BodySource | None:
        """Return the body source, if the message has one."""
        return self._body

    @property
    def is_store_backed(self) -> bool:
        """Return True if this message addresses a concrete store UID."""
        return self._store_location() is not None

    def _store_location(self) -> tuple[MailboxStore, str, int] | None:
        if self._store is None or self._ref is None or self._ref.uid is None:
            return None
        return self._store, self._ref.path, self._ref.uid

    @property
    def raw_header(self) -> str:
        """Return the raw header block, fetching it from the store if needed."""
        if not self._raw_header.is_set:
            raw = ""
            location = self._store_location()
            if location is not None:
                store, path, uid = location
                logger.debug("Fetching message headers", extra={"path": path, "uid": uid})
                raw = store.fetch_headers(path, uid)
            self._raw_header.set(raw)
        return self._raw_header.get()

    def headers(self) -> HeaderTable:
        """Return the parsed header table.

        The first call parses the raw header block and computes warnings;
        later calls return the same (possibly since mutated) table.
        """
        if not self._headers.is_set:
            table = HeaderTable.from_lines(unfold_headers(split_header_lines(self.raw_header)))
            self._warnings.set(compute_warnings(table, date_parser=self._date_parser))
            self._headers.set(table)
        return self._headers.get()

    @property
    def warnings(self) -> MessageWarning:
        """Return the warnings computed when the headers were parsed."""
        self.headers()
        return self._warnings.get()

    def message_id(self) -> str:
        """Return the Message-ID, preferring the longest one if duplicated."""
        if not self._message_id.is_set:
            self._message_id.set(longest_value(self.headers().get("message-id")))
        return self._message_id.get()

    def subject(self) -> str:
        """Return the subject (the first one if duplicated), or an empty string."""
        if not self._subject.is_set:
            self._subject.set(self.headers().first("subject") or "")
        return self._subject.get()

    def date(self) -> datetime | None:
        """Return the first parseable Date header.

        Not cached: the returned datetime belongs to the caller. Unparseable
        dates are indistinguishable from a missing header here; check
        ``warnings`` for ``NO_VALID_DATE``.
        """
        for candidate in self.headers().get_all("date"):
            parsed = self._date_parser(candidate)
            if parsed is not None:
                return parsed
        return None

    def key(self) -> str | None:
        """Return a SHA-256 deduplication key, or None if no identity is available."""
        return compute_identity_key(
            message_id=self.message_id(),
            headers=self.headers(),
            date=self.date(),
        )

    def size(self) -> int:
        """Return the approximate message size in bytes.

        Store-backed messages use the store's structure report; otherwise the
        body is drained into memory if it is still a stream. The byte length
        of every header value is added.
        """
        if not self._size.is_set:
            total = 0
            location = self._store_location()
            if location is not None:
                store, path, uid = location
                total += store.fetch_structure(path, uid).total()
            elif self._body is not None:
                total += len(self._body.drain())
            total += self.headers().size_bytes()
            self._size.set(total)
        return self._size.get()

    def add_header(self, name: str, value: str) -> None:
        """Add a header without replacing existing values of the same field."""
        self.headers().add(name, value)

    def delete(self) -> bool:
        """Delete this message from its store.

        Returns:
            The store's result, or False if the message is not store-backed.
        """
        location = self._store_location()
        if location is None:
            return False
        store, path, uid = location
        return store.delete(path, uid)

    def serialize(self, sink: Sink = None) -> None:
        """Write the message with folded headers to ``sink``.

        Args:
            sink: Binary or text stream, a callable taking byte chunks, or None
                for stdout.

        Raises:
            UnsupportedBodyError: If the message has no body to write.
            BodyConsumedError: If a stream-backed body was already partially read.
            SinkWriteError: If the sink rejects a write.
        """
        if not isinstance(self._body, BodySource):
            raise UnsupportedBodyError("Can't serialize a message without a body")
        self._body.ensure_readable()
        lines = fold_headers(self.headers().to_lines())
        writer = SinkWriter(sink)
        for line in lines:
            writer.write(f"{line}\n")
        writer.write("\n")
        last = b""
        for chunk in self._body.iter_chunks():
            if chunk:
                writer.write(chunk)
                last = chunk
        if not last.endswith(b"\n"):
            writer.write("\n")

    def __repr__(self) -> str:
        return f"{type(self).__name__}(ref={self._ref!r}, stream_body={bool(self._body and self._body.is_stream)})"
