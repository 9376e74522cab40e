"""IMAP client wrapper and the IMAP-backed mailbox store."""

from __future__ import annotations

import asyncio
import logging
import re
from collections.abc import Coroutine
from types import TracebackType
from typing import Any, TypeVar

import aioimaplib

from mailframe.config.settings import ImapSettings
from mailframe.models.types import StructureReport

_FETCH_LITERAL_RE = re.compile(rb"\{(?P<n>\d+)\}$")
_RFC822_SIZE_RE = re.compile(rb"RFC822\.SIZE (?P<size>\d+)")

T = TypeVar("T")

logger = logging.getLogger(__name__)


class ImapError(RuntimeError):
    """Raised for IMAP command errors."""


class ImapClient:
    """Async IMAP client with the commands a mailbox store needs."""

    def __init__(self, *, host: str, port: int, ssl: bool, timeout_seconds: float = 120.0) -> None:
        """Initialize the IMAP client.

        Args:
            host: IMAP host.
            port: IMAP port.
            ssl: Whether to use SSL.
            timeout_seconds: Network timeout for IMAP operations.
        """
        self._host = host
        self._port = port
        self._ssl = ssl
        self._timeout = timeout_seconds
        self._imap: aioimaplib.IMAP4 | aioimaplib.IMAP4_SSL | None = None
        self._selected: str | None = None

    async def connect(self) -> None:
        """Connect to the IMAP server."""
        if self._imap is not None:
            return
        if self._ssl:
            self._imap = aioimaplib.IMAP4_SSL(self._host, self._port, timeout=self._timeout)
        else:
            self._imap = aioimaplib.IMAP4(self._host, self._port, timeout=self._timeout)
        await asyncio.wait_for(self._imap.wait_hello_from_server(), timeout=self._timeout)

    async def login(self, *, username: str, app_password: str) -> None:
        """Login to the IMAP server.

        Args:
            username: IMAP username.
            app_password: IMAP app-specific password.

        Raises:
            ImapError: If authentication fails.
        """
        imap = self._require()
        resp = await asyncio.wait_for(imap.login(username, app_password), timeout=self._timeout)
        if resp.result != "OK":
            raise ImapError(f"IMAP login failed: {resp.result} {resp.lines!r}")

    async def logout(self) -> None:
        """Logout and close the IMAP connection."""
        if self._imap is None:
            return
        try:
            await self._imap.logout()
        finally:
            self._imap = None
            self._selected = None

    async def select(self, mailbox: str) -> None:
        """Select a mailbox unless it is already selected.

        Args:
            mailbox: Mailbox name.

        Raises:
            ImapError: If the SELECT command fails.
        """
        if self._selected == mailbox:
            return
        imap = self._require()
        resp = await asyncio.wait_for(imap.select(_imap_quote(mailbox)), timeout=self._timeout)
        if resp.result != "OK":
            raise ImapError(f"IMAP SELECT failed ({mailbox}): {resp.result} {resp.lines!r}")
        self._selected = mailbox

    async def uid_fetch_header(self, uid: int) -> bytes:
        """Fetch the raw header block for a UID without setting \\Seen.

        Raises:
            ImapError: If the FETCH command fails.
        """
        imap = self._require()
        resp = await asyncio.wait_for(
            imap.uid("FETCH", str(uid), "(BODY.PEEK[HEADER])"),
            timeout=self._timeout,
        )
        if resp.result != "OK":
            raise ImapError(f"IMAP UID FETCH failed: {resp.result} {resp.lines!r}")
        return _extract_literal(resp.lines)

    async def uid_fetch_size(self, uid: int) -> int:
        """Fetch RFC822.SIZE for a UID.

        Raises:
            ImapError: If the FETCH command fails or reports no size.
        """
        imap = self._require()
        resp = await asyncio.wait_for(
            imap.uid("FETCH", str(uid), "(RFC822.SIZE)"),
            timeout=self._timeout,
        )
        if resp.result != "OK":
            raise ImapError(f"IMAP UID FETCH failed: {resp.result} {resp.lines!r}")
        return _parse_rfc822_size(resp.lines)

    async def uid_delete(self, uid: int) -> bool:
        """Flag a UID as deleted and expunge it.

        Returns:
            True if the server accepted both commands.
        """
        imap = self._require()
        resp = await asyncio.wait_for(
            imap.uid("STORE", str(uid), "+FLAGS.SILENT", r"(\Deleted)"),
            timeout=self._timeout,
        )
        if resp.result != "OK":
            logger.debug("IMAP UID STORE rejected", extra={"uid": uid, "lines": resp.lines})
            return False
        if imap.has_capability("UIDPLUS"):
            coro = imap.uid("EXPUNGE", str(uid))
        else:
            coro = imap.expunge()
        resp = await asyncio.wait_for(coro, timeout=self._timeout)
        return resp.result == "OK"

    def _require(self) -> aioimaplib.IMAP4 | aioimaplib.IMAP4_SSL:
        """Return the underlying IMAP client or raise if not connected."""
        if self._imap is None:
            raise ImapError("IMAP client not connected")
        return self._imap


class ImapMailboxStore:
    """Synchronous mailbox store backed by an async IMAP connection.

    The store owns a private event loop; use it as a context manager so the
    connection is opened and closed around the messages that need it.
    """

    def __init__(self, *, settings: ImapSettings, client: ImapClient | None = None) -> None:
        """Initialize the store.

        Args:
            settings: IMAP connection settings.
            client: Optional pre-built client (defaults to one built from settings).
        """
        self._settings = settings
        self._client = client or ImapClient(
            host=settings.host,
            port=settings.port,
            ssl=settings.ssl,
            timeout_seconds=settings.timeout_seconds,
        )
        self._loop = asyncio.new_event_loop()

    def __enter__(self) -> ImapMailboxStore:
        try:
            self.open()
        except BaseException:
            self.close()
            raise
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def _run(self, coro: Coroutine[Any, Any, T]) -> T:
        return self._loop.run_until_complete(coro)

    def open(self) -> None:
        """Connect and authenticate."""
        self._run(self._client.connect())
        self._run(
            self._client.login(
                username=self._settings.username,
                app_password=self._settings.app_password,
            ),
        )
        logger.debug("IMAP store connected", extra={"host": self._settings.host})

    def close(self) -> None:
        """Logout and release the event loop."""
        if self._loop.is_closed():
            return
        try:
            self._run(self._client.logout())
        finally:
            self._loop.close()

    def fetch_headers(self, path: str, uid: int) -> str:
        """Return the raw header block for ``uid`` in mailbox ``path``."""
        self._run(self._client.select(path))
        raw = self._run(self._client.uid_fetch_header(uid))
        return raw.decode("utf-8", errors="surrogateescape")

    def fetch_structure(self, path: str, uid: int) -> StructureReport:
        """Return the message size as reported by RFC822.SIZE."""
        self._run(self._client.select(path))
        return StructureReport(total_bytes=self._run(self._client.uid_fetch_size(uid)))

    def delete(self, path: str, uid: int) -> bool:
        """Delete ``uid`` from mailbox ``path``."""
        self._run(self._client.select(path))
        return self._run(self._client.uid_delete(uid))


def _extract_literal(lines: list[bytes]) -> bytes:
    """Extract the literal payload from an IMAP FETCH response.

    Args:
        lines: IMAP response lines.

    Returns:
        Literal payload bytes.

    Raises:
        ImapError: If no literal payload can be extracted.
    """
    if not lines:
        raise ImapError("IMAP response had no lines")

    for idx, line in enumerate(lines):
        match = _FETCH_LITERAL_RE.search(line)
        if not match:
            continue
        size = int(match.group("n"))
        if idx + 1 >= len(lines):
            break
        literal = lines[idx + 1]
        if len(literal) == size:
            return bytes(literal)

    candidates = [
        line for line in lines if b"FETCH" not in line and line.strip() not in {b")", b""}
    ]
    if not candidates:
        raise ImapError(f"IMAP response contained no literal payload: {lines!r}")
    return bytes(max(candidates, key=len))


def _parse_rfc822_size(lines: list[bytes]) -> int:
    """Parse the RFC822.SIZE value from FETCH response lines.

    Raises:
        ImapError: If no size is present.
    """
    for line in lines:
        match = _RFC822_SIZE_RE.search(line)
        if match:
            return int(match.group("size"))
    raise ImapError(f"IMAP response contained no RFC822.SIZE: {lines!r}")


def _imap_quote(value: str) -> str:
    """Quote a string for use in IMAP commands.

    Args:
        value: Raw mailbox name.

    Returns:
        Quoted string safe for IMAP commands.
    """
    stripped = value.strip()
    if not stripped:
        return '""'
    escaped = stripped.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'
