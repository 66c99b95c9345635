from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

from .integrations import PocketConfig

logger = logging.getLogger(__name__)


class RuntimeConfig(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    db_path: str = Field(
        default="./research.sqlite",
        validation_alias=AliasChoices("DB_PATH", "DATABASE_URL"),
    )
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    log_json: bool = Field(default=False, validation_alias="LOG_JSON")
    timezone: str | None = Field(default=None, validation_alias="TIMEZONE")
    db_operation_timeout: float = Field(default=30.0, validation_alias="DB_OPERATION_TIMEOUT")
    db_max_retries: int = Field(default=3, validation_alias="DB_MAX_RETRIES")

    @field_validator("db_path", mode="before")
    @classmethod
    def _validate_db_path(cls, value: Any) -> str:
        raw = str(value or "./research.sqlite").strip()
        # sqlx-style URLs from older setups
        if raw.startswith("sqlite://"):
            raw = raw.removeprefix("sqlite://")
        if not raw:
            return "./research.sqlite"
        if "\x00" in raw:
            msg = "Database path contains invalid characters"
            raise ValueError(msg)
        return raw

    @field_validator("log_level", mode="before")
    @classmethod
    def _validate_log_level(cls, value: Any) -> str:
        log_level = str(value or "INFO").upper()
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if log_level not in valid_levels:
            msg = f"Invalid log level: {value}. Must be one of {valid_levels}"
            raise ValueError(msg)
        return log_level

    @field_validator("timezone", mode="before")
    @classmethod
    def _validate_timezone(cls, value: Any) -> str | None:
        if value in (None, ""):
            return None
        name = str(value).strip()
        try:
            ZoneInfo(name)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            msg = f"Unknown timezone: {name}"
            raise ValueError(msg) from exc
        return name

    @field_validator("db_operation_timeout", mode="before")
    @classmethod
    def _validate_timeout(cls, value: Any) -> float:
        if value in (None, ""):
            return 30.0
        try:
            parsed = float(str(value))
        except ValueError as exc:
            msg = "Database operation timeout must be a valid number"
            raise ValueError(msg) from exc
        if parsed <= 0:
            msg = "Database operation timeout must be positive"
            raise ValueError(msg)
        return parsed

    @field_validator("db_max_retries", mode="before")
    @classmethod
    def _validate_db_retries(cls, value: Any) -> int:
        try:
            parsed = int(str(value if value not in (None, "") else 3))
        except ValueError as exc:
            msg = "Database max retries must be a valid integer"
            raise ValueError(msg) from exc
        if parsed < 0:
            msg = "Database max retries cannot be negative"
            raise ValueError(msg)
        return parsed

    def zoneinfo(self) -> ZoneInfo | None:
        return ZoneInfo(self.timezone) if self.timezone else None


@dataclass(frozen=True)
class AppConfig:
    runtime: RuntimeConfig
    pocket: PocketConfig


class Settings(BaseSettings):
    """Application settings loaded from environment variables and `.env`.

    Nested sections are populated by matching the validation_alias on each field.
    """

    model_config = SettingsConfigDict(
        extra="ignore",
        populate_by_name=True,
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
    )

    runtime: RuntimeConfig = Field(default_factory=RuntimeConfig)
    pocket: PocketConfig = Field(default_factory=PocketConfig)

    @model_validator(mode="before")
    @classmethod
    def _build_nested_from_env(cls, data: dict[str, Any]) -> dict[str, Any]:
        """Build nested config objects from flat environment variables.

        Constructor arguments take precedence over the environment.
        """
        if not isinstance(data, dict):
            return data

        result = dict(data)
        merged_source = {**dict(os.environ), **data}

        for field_name, field_info in cls.model_fields.items():
            annotation = field_info.annotation
            if not isinstance(annotation, type) or not issubclass(annotation, BaseModel):
                continue

            nested_data: dict[str, Any] = {}
            for nested_field_name, nested_field in annotation.model_fields.items():
                env_value = cls._resolve_env_value(merged_source, nested_field)
                if env_value is not None:
                    nested_data[nested_field_name] = env_value

            if nested_data:
                if field_name in result and isinstance(result[field_name], dict):
                    result[field_name] = {**nested_data, **result[field_name]}
                else:
                    result[field_name] = nested_data

        return result

    @staticmethod
    def _resolve_env_value(data: dict[str, Any], field: Any) -> Any | None:
        """Resolve the environment value for a field using its aliases."""
        aliases: list[str] = []
        alias = field.validation_alias
        if isinstance(alias, AliasChoices):
            aliases.extend(choice for choice in alias.choices if isinstance(choice, str))
        elif isinstance(alias, str):
            aliases.append(alias)
        if field.alias:
            aliases.append(field.alias)

        for name in aliases:
            if name in data:
                return data[name]
        return None

    def as_app_config(self) -> AppConfig:
        return AppConfig(runtime=self.runtime, pocket=self.pocket)


def load_config(**overrides: Any) -> AppConfig:
    """Load application configuration from the environment.

    Keyword overrides (e.g. ``runtime={"db_path": "..."}``) win over env values.

    Raises:
        RuntimeError: If configuration validation fails.
    """
    try:
        settings = Settings(**overrides)
    except ValidationError as exc:
        msg = f"Configuration validation failed: {exc}"
        raise RuntimeError(msg) from exc
    return settings.as_app_config()
