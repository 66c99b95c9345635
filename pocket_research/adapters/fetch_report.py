"""Outcome of one provider fetch run."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class ItemDecodeFailure(BaseModel):
    """One wire item that was dropped during decoding."""

    item_key: str
    offset: int
    fields: list[str] = Field(default_factory=list)
    message: str


class FetchReport(BaseModel):
    """Items decoded by a fetch run plus everything that was skipped on the way."""

    items: list[Any] = Field(default_factory=list)
    pages_requested: int = 0
    envelope_errors: list[str] = Field(default_factory=list)
    decode_failures: list[ItemDecodeFailure] = Field(default_factory=list)
    aborted: bool = False
