"""Value models shared between the message core, stores, and the CLI."""

from __future__ import annotations

from pydantic import ConfigDict, Field

from mailframe.models.base import AppModel


class MessageRef(AppModel):
    """Location of a message inside a remote mailbox store."""

    model_config = ConfigDict(frozen=True)

    path: str = Field(min_length=1)
    uid: int | None = Field(default=None, ge=1)


class PartInfo(AppModel):
    """Byte count reported for a single body part, as `{"bytes": n}`."""

    model_config = ConfigDict(populate_by_name=True)

    size_bytes: int = Field(default=0, ge=0, alias="bytes")


class StructureReport(AppModel):
    """Size information reported by a store for one message."""

    total_bytes: int = Field(default=0, ge=0)
    parts: list[PartInfo] = Field(default_factory=list)

    def total(self) -> int:
        """Return the message total plus every part byte count."""
        return self.total_bytes + sum(part.size_bytes for part in self.parts)


class MessageSummary(AppModel):
    """Inspection summary emitted by the CLI."""

    subject: str
    message_id: str
    date: str | None = None
    key: str | None = None
    size_bytes: int = Field(ge=0)
    warnings: list[str] = Field(default_factory=list)
