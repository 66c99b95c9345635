"""Storage port used by the sync engine."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from pocket_research.domain.models.item import CanonicalItem
    from pocket_research.domain.models.secrets import Secrets


class ItemStore(Protocol):
    async def async_get_provider_id(self, name: str) -> int: ...

    async def async_insert_item_if_absent(
        self, item: CanonicalItem, provider_id: int
    ) -> tuple[int, bool]: ...

    async def async_upsert_tag(self, tag_name: str) -> None: ...

    async def async_link_item_tag(self, item_id: int, tag_name: str) -> bool: ...

    async def async_get_item(self, item_id: int) -> CanonicalItem | None: ...

    async def async_get_item_by_uri(
        self, uri: str, provider_id: int | None = None
    ) -> CanonicalItem | None: ...

    async def async_set_favorite(self, item_id: int, mark: bool) -> bool: ...

    async def async_set_notes(self, item_id: int, notes: str | None) -> bool: ...

    async def async_get_secrets(self) -> Secrets: ...

    async def async_set_secrets(self, secrets: Secrets) -> None: ...
