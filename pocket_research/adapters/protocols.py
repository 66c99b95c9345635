"""Provider adapter contract.

The sync engine only talks to this protocol; concrete providers decide which
capabilities are real and raise ``UnsupportedOperationError`` for the rest.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from collections.abc import Sequence

    from pocket_research.adapters.fetch_report import FetchReport
    from pocket_research.domain.models.item import CanonicalItem, ProviderName, Tag
    from pocket_research.domain.models.secrets import Secrets


class ProviderAdapter(Protocol):
    name: ProviderName

    async def authenticate(self) -> Secrets: ...

    async def fetch_items(self, limit: int | None = None) -> FetchReport: ...

    async def add_item(
        self, uri: str, tags: Sequence[str], title: str | None = None
    ) -> int | None: ...

    async def mark_favorite(self, item_id: int, mark: bool) -> None: ...

    def to_canonical(self, raw: Any) -> tuple[CanonicalItem, list[Tag]]: ...
