"""Validated value models (Pydantic)."""

from __future__ import annotations

from mailframe.models.types import MessageRef, MessageSummary, PartInfo, StructureReport

__all__ = [
    "MessageRef",
    "MessageSummary",
    "PartInfo",
    "StructureReport",
]
