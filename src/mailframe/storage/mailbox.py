"""Remote mailbox store capability consumed by messages."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from mailframe.models.types import StructureReport


@runtime_checkable
class MailboxStore(Protocol):
    """Fetch and delete messages addressed by mailbox path and UID.

    Implementations raise their own errors on access failures; callers do
    not retry.
    """

    def fetch_headers(self, path: str, uid: int) -> str:
        """Return the raw header block of a message."""
        ...

    def fetch_structure(self, path: str, uid: int) -> StructureReport:
        """Return size information for a message."""
        ...

    def delete(self, path: str, uid: int) -> bool:
        """Delete a message and return whether the store accepted it."""
        ...
