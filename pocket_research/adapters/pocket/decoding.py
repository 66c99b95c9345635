"""Tolerant coercers for Pocket wire values.

The Pocket API is loose about JSON types: ids and flags arrive as strings
or numbers, timestamps as numeric strings with ``"0"`` meaning unset, and
lists as either arrays or objects keyed by id. Each helper accepts every
shape seen in the wild and raises ``ValueError`` for anything else so the
surrounding pydantic validator reports the field by name.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any
from urllib.parse import urlsplit

_FLAG_STRINGS = {"0": False, "1": True}


def coerce_int(value: Any) -> Any:
    """Accept ``42`` or ``"42"``; reject booleans and fractional numbers."""
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValueError("expected an integer, got a boolean")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if value.is_integer():
            return int(value)
        raise ValueError(f"expected an integer, got {value!r}")
    if isinstance(value, str):
        text = value.strip()
        try:
            return int(text)
        except ValueError:
            raise ValueError(f"expected an integer string, got {value!r}") from None
    raise ValueError(f"expected an integer, got {type(value).__name__}")


def coerce_int_bool(value: Any) -> bool:
    """Decode ``"0"``/``"1"`` style flags. Missing means False."""
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        if value in (0, 1):
            return bool(value)
        raise ValueError(f"expected 0 or 1, got {value!r}")
    if isinstance(value, str) and value in _FLAG_STRINGS:
        return _FLAG_STRINGS[value]
    raise ValueError(f"expected zero or one, got {value!r}")


def coerce_unix_timestamp(value: Any) -> datetime | None:
    """Unix seconds as string or number; ``"0"``, ``0`` and empty mean unset."""
    if value is None or isinstance(value, datetime):
        return value
    if isinstance(value, str) and not value.strip():
        return None
    seconds = coerce_int(value)
    if seconds == 0:
        return None
    if seconds < 0:
        raise ValueError(f"timestamp must not be negative, got {value!r}")
    return datetime.fromtimestamp(seconds, tz=UTC)


def coerce_url(value: Any) -> str | None:
    """Best-effort URL: anything that is not an absolute URL becomes None."""
    if not isinstance(value, str):
        return None
    text = value.strip()
    if not text:
        return None
    try:
        parts = urlsplit(text)
    except ValueError:
        return None
    if not parts.scheme or not (parts.netloc or parts.scheme in {"file", "mailto"}):
        return None
    return text


def coerce_list_or_map(value: Any) -> list[Any]:
    """Arrays keep their order; objects yield values in sorted-key order."""
    if value is None or value == "":
        return []
    if isinstance(value, list):
        return value
    if isinstance(value, dict):
        return [value[key] for key in sorted(value)]
    raise ValueError(f"expected an object or array, got {type(value).__name__}")
