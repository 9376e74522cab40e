"""Message body storage and serialization sinks.

A body is either an in-memory buffer or a pull-based stream. Streams are
single-pass: ``drain`` is the one-way transition that reads a stream to the
end, releases it, and keeps the bytes as a buffer. Reading a stream that was
already partially consumed raises ``BodyConsumedError``.
"""

from __future__ import annotations

import io
import sys
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from typing import IO, Any

from mailframe.message.errors import BodyConsumedError, SinkWriteError

DEFAULT_CHUNK_SIZE = 64 * 1024

Sink = IO[bytes] | IO[str] | Callable[[bytes], Any] | None


def _to_bytes(chunk: bytes | str) -> bytes:
    if isinstance(chunk, str):
        return chunk.encode("utf-8", errors="surrogateescape")
    return bytes(chunk)


@dataclass(frozen=True)
class BufferBody:
    """Body held entirely in memory."""

    data: bytes


@dataclass
class StreamBody:
    """Body still sitting in an unread stream."""

    stream: IO[bytes]
    chunk_size: int = DEFAULT_CHUNK_SIZE
    consumed: bool = field(default=False, init=False)

    def read_chunks(self) -> Iterator[bytes]:
        """Yield the rest of the stream once, then close it.

        Raises:
            BodyConsumedError: If the stream was already read from.
        """
        if self.consumed:
            raise BodyConsumedError("message body stream was already consumed")
        self.consumed = True
        try:
            while True:
                chunk = self.stream.read(self.chunk_size)
                if not chunk:
                    break
                yield _to_bytes(chunk)
        finally:
            self.stream.close()


class BodySource:
    """Owns the body variant and performs the stream-to-buffer transition."""

    def __init__(self, state: BufferBody | StreamBody) -> None:
        self._state = state

    @classmethod
    def from_bytes(cls, data: bytes | str) -> BodySource:
        """Create a buffer-backed body."""
        return cls(BufferBody(_to_bytes(data)))

    @classmethod
    def from_stream(cls, stream: IO[bytes], *, chunk_size: int = DEFAULT_CHUNK_SIZE) -> BodySource:
        """Create a stream-backed body that is read lazily."""
        return cls(StreamBody(stream=stream, chunk_size=chunk_size))

    @property
    def state(self) -> BufferBody | StreamBody:
        """Return the current body variant."""
        return self._state

    @property
    def is_stream(self) -> bool:
        """Return True while the body has not been drained into memory."""
        return isinstance(self._state, StreamBody)

    def ensure_readable(self) -> None:
        """Raise if the body can no longer be read in full.

        Raises:
            BodyConsumedError: If a stream-backed body was partially read.
        """
        state = self._state
        if isinstance(state, StreamBody) and state.consumed:
            raise BodyConsumedError("message body stream was already consumed")

    def drain(self) -> bytes:
        """Return the full body, draining a stream into a buffer first.

        Raises:
            BodyConsumedError: If a stream-backed body was partially read.
        """
        state = self._state
        if isinstance(state, StreamBody):
            data = b"".join(state.read_chunks())
            self._state = BufferBody(data)
            return data
        return state.data

    def iter_chunks(self) -> Iterator[bytes]:
        """Yield the body in chunks.

        A buffer yields a single chunk. A stream is pulled chunk by chunk and,
        once fully read, becomes a buffer so later reads still see the body.

        Raises:
            BodyConsumedError: If a stream-backed body was partially read.
        """
        state = self._state
        if isinstance(state, BufferBody):
            yield state.data
            return
        seen: list[bytes] = []
        for chunk in state.read_chunks():
            seen.append(chunk)
            yield chunk
        self._state = BufferBody(b"".join(seen))


class SinkWriter:
    """Write text or byte chunks to a stream, a callable, or stdout."""

    def __init__(self, sink: Sink = None) -> None:
        if sink is None:
            sink = getattr(sys.stdout, "buffer", sys.stdout)
        self._text = isinstance(sink, io.TextIOBase)
        if callable(sink) and not hasattr(sink, "write"):
            self._write = sink
        elif hasattr(sink, "write"):
            self._write = sink.write
        else:
            raise TypeError(f"Unsupported sink: {type(sink).__name__}")

    def write(self, chunk: bytes | str) -> None:
        """Write one chunk.

        Raises:
            SinkWriteError: If the sink rejects the write.
        """
        data: bytes | str = _to_bytes(chunk)
        if self._text:
            data = data.decode("utf-8", errors="surrogateescape")
        try:
            self._write(data)
        except (OSError, ValueError) as exc:
            raise SinkWriteError(f"failed to write message to sink: {exc}") from exc
