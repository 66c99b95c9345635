"""Pydantic models for the Pocket v3 API."""

from __future__ import annotations

from datetime import datetime  # noqa: TC003 - Pydantic needs this at runtime
from typing import Any, Literal

from pydantic import BaseModel, Field, field_serializer, field_validator

from pocket_research.adapters.pocket.decoding import (
    coerce_int,
    coerce_int_bool,
    coerce_list_or_map,
    coerce_unix_timestamp,
    coerce_url,
)
from pocket_research.core.logging_utils import truncate_log_content
from pocket_research.domain.exceptions.domain_exceptions import ResponseDecodeError


class PocketItemTag(BaseModel):
    """Tag attached to a Pocket item."""

    item_id: int | None = None
    tag: str

    model_config = {"extra": "ignore"}

    @field_validator("item_id", mode="before")
    @classmethod
    def _coerce_item_id(cls, value: Any) -> Any:
        return coerce_int(value)


class PocketItem(BaseModel):
    """One entry of the ``list`` returned by ``/v3/get`` (detailType=complete)."""

    item_id: int
    given_url: str | None = None
    given_title: str | None = None
    resolved_url: str | None = None
    resolved_title: str | None = None
    excerpt: str | None = None
    lang: str | None = None
    favorite: bool = False
    time_added: datetime | None = None
    time_read: datetime | None = None
    time_updated: datetime | None = None
    tags: list[PocketItemTag] = Field(default_factory=list)

    model_config = {"extra": "ignore"}

    @field_validator("item_id", mode="before")
    @classmethod
    def _coerce_item_id(cls, value: Any) -> Any:
        return coerce_int(value)

    @field_validator("given_url", "resolved_url", mode="before")
    @classmethod
    def _coerce_url(cls, value: Any) -> str | None:
        return coerce_url(value)

    @field_validator("favorite", mode="before")
    @classmethod
    def _coerce_favorite(cls, value: Any) -> bool:
        return coerce_int_bool(value)

    @field_validator("time_added", "time_read", "time_updated", mode="before")
    @classmethod
    def _coerce_timestamp(cls, value: Any) -> datetime | None:
        return coerce_unix_timestamp(value)

    @field_validator("tags", mode="before")
    @classmethod
    def _coerce_tags(cls, value: Any) -> list[Any]:
        return coerce_list_or_map(value)

    @property
    def tag_names(self) -> list[str]:
        return [tag.tag for tag in self.tags]


class PocketCredentials(BaseModel):
    consumer_key: str
    access_token: str


class PocketGetParams(BaseModel):
    """Body of a ``/v3/get`` page request."""

    state: Literal["unread", "archive", "all"] = "all"
    sort: Literal["newest", "oldest", "title", "site"] = "newest"
    detail_type: Literal["simple", "complete"] = Field(
        default="complete", serialization_alias="detailType"
    )
    count: int = 30
    offset: int = 0


class PocketAddRequest(BaseModel):
    """Body of a ``/v3/add`` request; tags travel comma-delimited."""

    url: str
    title: str | None = None
    tags: list[str] | None = None

    @field_serializer("tags")
    def _serialize_tags(self, tags: list[str] | None) -> str | None:
        if tags is None:
            return None
        return ",".join(tags)


class PocketSendAction(BaseModel):
    """One action of a ``/v3/send`` batch."""

    item_id: int
    action: Literal["favorite", "unfavorite"]
    time: str | None = None

    @field_serializer("item_id")
    def _serialize_item_id(self, item_id: int) -> str:
        return str(item_id)

    @classmethod
    def favorite(cls, item_id: int, mark: bool) -> PocketSendAction:
        return cls(item_id=item_id, action="favorite" if mark else "unfavorite")


class PocketRequestToken(BaseModel):
    code: str
    state: str | None = None


class PocketAuthorizeResponse(BaseModel):
    access_token: str
    username: str | None = None
    state: str | None = None


class SuccessEnvelope(BaseModel):
    """Success reply; ``raw_items`` is None when the ``list`` key was absent."""

    raw_items: list[tuple[str, Any]] | None = None
    status: int | None = None


class ErrorEnvelope(BaseModel):
    error: str


def parse_envelope(payload: Any) -> SuccessEnvelope | ErrorEnvelope:
    """Classify a decoded ``/v3/get`` body.

    The ``list`` member may be an object keyed by item id or an array.
    Object entries are returned in sorted-key order, array entries in
    their original order keyed by position.

    Raises:
        ResponseDecodeError: If the body is not an object or ``list`` has
            an unusable type.
    """
    if not isinstance(payload, dict):
        raise ResponseDecodeError(
            f"Unexpected response body of type {type(payload).__name__}",
            details={"body": truncate_log_content(str(payload))},
        )

    error = payload.get("error")
    if error is not None and "list" not in payload:
        return ErrorEnvelope(error=str(error))

    raw_list = payload.get("list")
    if raw_list is None:
        return SuccessEnvelope(raw_items=None, status=_status_of(payload))

    if isinstance(raw_list, dict):
        entries = [(str(key), raw_list[key]) for key in sorted(raw_list)]
    elif isinstance(raw_list, list):
        entries = [(str(index), value) for index, value in enumerate(raw_list)]
    else:
        raise ResponseDecodeError(
            f"'list' must be an object or array, got {type(raw_list).__name__}",
        )
    return SuccessEnvelope(raw_items=entries, status=_status_of(payload))


def _status_of(payload: dict[str, Any]) -> int | None:
    try:
        return coerce_int(payload.get("status"))
    except ValueError:
        return None
