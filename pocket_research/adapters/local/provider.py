"""Local provider: items saved by hand, no remote service behind them."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from pocket_research.core.time_utils import unix_now
from pocket_research.domain.exceptions.domain_exceptions import UnsupportedOperationError
from pocket_research.domain.models.item import CanonicalItem, ProviderName, Tag
from pocket_research.domain.models.secrets import Secrets

if TYPE_CHECKING:
    from collections.abc import Sequence

    from pocket_research.adapters.fetch_report import FetchReport

LOCAL_LANG = "en"


@dataclass
class LocalItem:
    """User-supplied item before normalization."""

    uri: str
    title: str | None = None
    excerpt: str | None = None
    time_added: int = field(default_factory=unix_now)
    tags: list[str] = field(default_factory=list)
    id: int | None = None


class LocalProvider:
    name = ProviderName.LOCAL

    def __init__(self, secrets: Secrets | None = None) -> None:
        self._secrets = secrets or Secrets()

    async def authenticate(self) -> Secrets:
        return self._secrets

    async def fetch_items(self, limit: int | None = None) -> FetchReport:
        raise UnsupportedOperationError(
            "The local provider has no remote feed; add items with `local add`",
            details={"provider": self.name.value},
        )

    async def add_item(
        self, uri: str, tags: Sequence[str], title: str | None = None
    ) -> int | None:
        # storage assigns the id
        return None

    async def mark_favorite(self, item_id: int, mark: bool) -> None:
        return None

    def to_canonical(self, raw: LocalItem) -> tuple[CanonicalItem, list[Tag]]:
        item = CanonicalItem(
            id=raw.id,
            uri=raw.uri,
            title=CanonicalItem.normalized_title(raw.title),
            excerpt=raw.excerpt or "",
            time_added=raw.time_added,
            favorite=False,
            lang=LOCAL_LANG,
            notes=None,
        )
        return item, Tag.from_names(raw.tags)
