"""Canonical item model.

Provider adapters produce these from wire data or user input; storage
persists them once and afterwards only the local mutation operations
(favorite, notes) touch them.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from pocket_research.core.time_utils import format_short
from pocket_research.domain.exceptions.domain_exceptions import MissingUriError

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import tzinfo

UNTITLED = "Untitled"


class ProviderName(str, Enum):
    """Registered item sources."""

    POCKET = "pocket"
    LOCAL = "local"

    @property
    def is_remote(self) -> bool:
        return self is ProviderName.POCKET


class ItemLifecycle(str, Enum):
    """States an item passes through; the bulk path ends at INSERTED."""

    UNKNOWN = "unknown"
    FETCHED = "fetched"
    INSERTED = "inserted"
    FAVORITE_TOGGLED = "favorite_toggled"
    NOTES_UPDATED = "notes_updated"


@dataclass(frozen=True)
class Tag:
    tag_name: str

    @classmethod
    def from_names(cls, names: Iterable[str] | None) -> list[Tag]:
        """Build tags from raw names, dropping blanks and repeats (first wins)."""
        seen: set[str] = set()
        tags: list[Tag] = []
        for raw in names or ():
            name = raw.strip()
            if not name or name in seen:
                continue
            seen.add(name)
            tags.append(cls(name))
        return tags


@dataclass
class CanonicalItem:
    """Normalized, storage-ready research item."""

    uri: str
    title: str
    time_added: int
    excerpt: str = ""
    favorite: bool = False
    lang: str | None = None
    notes: str | None = None
    id: int | None = None

    def __post_init__(self) -> None:
        if not self.uri:
            raise MissingUriError("An item needs a URI")
        self.title = self.normalized_title(self.title)
        if self.excerpt is None:
            self.excerpt = ""

    @staticmethod
    def normalized_title(*candidates: str | None) -> str:
        """First non-empty candidate, else the literal ``Untitled``."""
        for candidate in candidates:
            if candidate:
                return candidate
        return UNTITLED

    def format_time_added(self, tz: tzinfo | None = None) -> str:
        return format_short(self.time_added, tz)

    def to_display(self, tags: Iterable[Tag] = (), tz: tzinfo | None = None) -> str:
        lines = [
            f"Title: {self.title}",
            f"URI: {self.uri}",
            f"Added: {self.format_time_added(tz)}",
            f"Favorite: {'yes' if self.favorite else 'no'}",
        ]
        tag_names = [tag.tag_name for tag in tags]
        if tag_names:
            lines.append(f"Tags: {', '.join(tag_names)}")
        if self.excerpt:
            lines.append(f"Excerpt: {self.excerpt}")
        if self.notes:
            lines.append(f"Notes: {self.notes}")
        return "\n".join(lines)
