from __future__ import annotations

import logging
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

logger = logging.getLogger(__name__)

MISSING_URI_POLICIES = frozenset({"placeholder", "reject"})


class PocketConfig(BaseModel):
    """Pocket API credentials and fetch-loop tuning."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    consumer_key: str = Field(default="", validation_alias="POCKET_CONSUMER_KEY")
    access_token: str = Field(default="", validation_alias="POCKET_ACCESS_TOKEN")
    api_url: str = Field(
        default="https://getpocket.com/v3",
        validation_alias="POCKET_API_URL",
    )
    authorize_url: str = Field(
        default="https://getpocket.com/auth/authorize",
        validation_alias="POCKET_AUTHORIZE_URL",
    )
    redirect_uri: str = Field(default="0.0.0.0", validation_alias="POCKET_REDIRECT_URI")
    page_size: int = Field(
        default=30,
        validation_alias="POCKET_PAGE_SIZE",
        description="Items requested per /get call",
    )
    max_empty_responses: int = Field(
        default=2,
        validation_alias="POCKET_MAX_EMPTY_RESPONSES",
        description="Consecutive empty pages treated as end of data",
    )
    max_consecutive_errors: int | None = Field(
        default=None,
        validation_alias="POCKET_MAX_CONSECUTIVE_ERRORS",
        description="Consecutive error envelopes before the fetch loop gives up (unset: never)",
    )
    pace_delay_sec: float = Field(
        default=0.1,
        validation_alias="POCKET_PACE_DELAY_SEC",
        description="Flat delay between paginated requests",
    )
    timeout_sec: float = Field(default=30.0, validation_alias="POCKET_TIMEOUT_SEC")
    max_retries: int = Field(default=3, validation_alias="POCKET_MAX_RETRIES")
    missing_uri_policy: str = Field(
        default="placeholder",
        validation_alias="POCKET_MISSING_URI_POLICY",
        description="'placeholder' stores '#' when an item has no URL, 'reject' drops it",
    )

    @field_validator("api_url", "authorize_url", mode="before")
    @classmethod
    def _strip_trailing_slash(cls, value: Any, info: ValidationInfo) -> str:
        url = str(value or "").strip()
        if not url:
            return str(cls.model_fields[info.field_name].default)
        return url.rstrip("/")

    @field_validator("consumer_key", "access_token", mode="before")
    @classmethod
    def _strip_credentials(cls, value: Any) -> str:
        if value is None:
            return ""
        return str(value).strip()

    @field_validator("page_size", "max_empty_responses", mode="before")
    @classmethod
    def _validate_positive_int(cls, value: Any, info: ValidationInfo) -> int:
        if value in (None, ""):
            return int(cls.model_fields[info.field_name].default)
        try:
            parsed = int(str(value))
        except ValueError as exc:
            msg = f"{info.field_name.replace('_', ' ')} must be a valid integer"
            raise ValueError(msg) from exc
        if parsed <= 0:
            msg = f"{info.field_name.replace('_', ' ').capitalize()} must be positive"
            raise ValueError(msg)
        return parsed

    @field_validator("max_consecutive_errors", mode="before")
    @classmethod
    def _validate_error_cap(cls, value: Any) -> int | None:
        if value in (None, ""):
            return None
        try:
            parsed = int(str(value))
        except ValueError as exc:
            raise ValueError("Max consecutive errors must be a valid integer") from exc
        if parsed <= 0:
            raise ValueError("Max consecutive errors must be positive")
        return parsed

    @field_validator("max_retries", mode="before")
    @classmethod
    def _validate_retries(cls, value: Any) -> int:
        if value in (None, ""):
            return 3
        try:
            parsed = int(str(value))
        except ValueError as exc:
            msg = "Max retries must be a valid integer"
            raise ValueError(msg) from exc
        if parsed < 0 or parsed > 10:
            msg = "Max retries must be between 0 and 10"
            raise ValueError(msg)
        return parsed

    @field_validator("pace_delay_sec", "timeout_sec", mode="before")
    @classmethod
    def _validate_seconds(cls, value: Any, info: ValidationInfo) -> float:
        if value in (None, ""):
            return float(cls.model_fields[info.field_name].default)
        try:
            parsed = float(str(value))
        except ValueError as exc:
            msg = f"{info.field_name.replace('_', ' ')} must be a valid number"
            raise ValueError(msg) from exc
        if parsed < 0:
            msg = f"{info.field_name.replace('_', ' ').capitalize()} cannot be negative"
            raise ValueError(msg)
        return parsed

    @field_validator("missing_uri_policy", mode="before")
    @classmethod
    def _validate_missing_uri_policy(cls, value: Any) -> str:
        policy = str(value or "placeholder").lower().strip()
        if policy not in MISSING_URI_POLICIES:
            msg = (
                f"Invalid missing URI policy: {policy}. "
                f"Must be one of {sorted(MISSING_URI_POLICIES)}"
            )
            raise ValueError(msg)
        return policy
