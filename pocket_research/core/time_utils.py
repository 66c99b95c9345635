from __future__ import annotations

from datetime import UTC, datetime, tzinfo


def utc_now() -> datetime:
    """Return a timezone-aware UTC datetime."""
    return datetime.now(UTC)


def unix_now() -> int:
    """Current wall-clock time as integer Unix seconds."""
    return int(utc_now().timestamp())


def from_unix(seconds: int) -> datetime:
    return datetime.fromtimestamp(seconds, tz=UTC)


def format_short(seconds: int, tz: tzinfo | None = None) -> str:
    """Render a Unix timestamp as ``21 Aug'21,  5pm``.

    ``tz`` is passed explicitly by the caller; UTC when omitted.
    """
    moment = from_unix(seconds).astimezone(tz or UTC)
    hour = moment.hour % 12 or 12
    meridiem = "am" if moment.hour < 12 else "pm"
    return f"{moment:%d %b'%y}, {hour:>2}{meridiem}"
