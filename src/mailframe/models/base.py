"""Base Pydantic model configuration."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class AppModel(BaseModel):
    """Base model for mailframe values.

    Strings are kept verbatim: header text and mailbox names must round-trip
    exactly as the server or message supplied them.
    """

    model_config = ConfigDict(
        extra="forbid",
        validate_default=True,
        validate_assignment=True,
    )
