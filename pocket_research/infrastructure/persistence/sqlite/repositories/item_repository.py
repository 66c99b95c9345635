"""SQLite implementation of the item and tag repository.

This adapter owns the ``items``, ``tags`` and ``item_tags`` tables. Writes
are insert-if-absent: a row that already exists is never overwritten, which
keeps locally edited fields (favorite, notes) intact across repeated syncs.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import peewee

from pocket_research.db.models import ItemTag, Provider, ResearchItem
from pocket_research.db.models import Tag as TagModel
from pocket_research.domain.exceptions.domain_exceptions import (
    IdCollisionError,
    StorageConflictError,
)
from pocket_research.domain.models.item import CanonicalItem, Tag
from pocket_research.infrastructure.persistence.sqlite.base import SqliteBaseRepository

if TYPE_CHECKING:
    from collections.abc import Sequence

logger = logging.getLogger(__name__)


def _row_to_item(row: ResearchItem) -> CanonicalItem:
    return CanonicalItem(
        id=row.id,
        uri=row.uri,
        title=row.title,
        excerpt=row.excerpt or "",
        time_added=row.time_added,
        favorite=bool(row.favorite),
        lang=row.lang,
        notes=row.notes,
    )


def _tags_for(item_id: int) -> list[Tag]:
    query = (
        ItemTag.select(ItemTag.tag)
        .where(ItemTag.item == item_id)
        .order_by(ItemTag.tag)
    )
    return [Tag(link.tag_name) for link in query]


class SqliteItemRepositoryAdapter(SqliteBaseRepository):
    """Adapter for research item, tag and association operations."""

    async def async_insert_item_if_absent(
        self, item: CanonicalItem, provider_id: int
    ) -> tuple[int, bool]:
        """Insert ``item`` unless this provider already stored it.

        Items carrying a provider id are keyed by that id. Items without one
        (local saves) are matched on ``(provider_id, uri)`` and receive a
        storage-assigned id when new.

        Returns:
            ``(item_id, inserted)``; ``inserted`` is False when the row existed.

        Raises:
            IdCollisionError: If the id is already taken by another provider's item.
        """

        def _existing() -> ResearchItem | None:
            if item.id is None:
                return ResearchItem.get_or_none(
                    (ResearchItem.provider == provider_id) & (ResearchItem.uri == item.uri)
                )
            existing = ResearchItem.get_or_none(ResearchItem.id == item.id)
            if existing is not None and existing.provider_id != provider_id:
                raise IdCollisionError(
                    f"Item id {item.id} already belongs to provider {existing.provider_id}",
                    details={"uri": item.uri, "id": item.id, "owner": existing.provider_id},
                )
            return existing

        def _insert() -> tuple[int, bool]:
            existing = _existing()
            if existing is not None:
                return existing.id, False

            values = {
                "uri": item.uri,
                "title": item.title,
                "excerpt": item.excerpt or "",
                "time_added": item.time_added,
                "favorite": item.favorite,
                "lang": item.lang,
                "notes": item.notes,
                "provider": provider_id,
            }
            if item.id is not None:
                values["id"] = item.id
            try:
                new_id = ResearchItem.insert(**values).execute()
            except peewee.IntegrityError as exc:
                raise StorageConflictError(
                    f"Item insert conflicted: {exc}", details={"uri": item.uri, "id": item.id}
                ) from exc
            return (item.id if item.id is not None else int(new_id)), True

        try:
            return await self._execute(_insert, operation_name="insert_item_if_absent")
        except IdCollisionError:
            raise
        except StorageConflictError as exc:
            # Lost a race with another writer; the row is there now.
            logger.debug(
                "item_insert_conflict_absorbed", extra={"uri": item.uri, "error": exc.message}
            )
            existing = await self._execute(
                _existing, operation_name="get_existing_item", read_only=True
            )
            if existing is None:
                raise
            return int(existing.id), False

    async def async_upsert_tag(self, tag_name: str) -> None:
        def _upsert() -> None:
            TagModel.insert(tag_name=tag_name).on_conflict_ignore().execute()

        await self._execute(_upsert, operation_name="upsert_tag")

    async def async_link_item_tag(self, item_id: int, tag_name: str) -> bool:
        """Associate a tag with an item.

        Returns:
            True when a new association was created, False when it existed.

        Raises:
            StorageConflictError: If the item or tag row is missing.
        """

        def _link() -> bool:
            exists = (
                ItemTag.select()
                .where((ItemTag.item == item_id) & (ItemTag.tag == tag_name))
                .exists()
            )
            if exists:
                return False
            try:
                ItemTag.insert(item=item_id, tag=tag_name).execute()
            except peewee.IntegrityError as exc:
                raise StorageConflictError(
                    f"Could not link tag '{tag_name}' to item {item_id}: {exc}",
                    details={"item_id": item_id, "tag_name": tag_name},
                ) from exc
            return True

        return await self._execute(_link, operation_name="link_item_tag")

    async def async_get_item(self, item_id: int) -> CanonicalItem | None:
        def _query() -> CanonicalItem | None:
            row = ResearchItem.get_or_none(ResearchItem.id == item_id)
            return _row_to_item(row) if row else None

        return await self._execute(_query, operation_name="get_item", read_only=True)

    async def async_get_item_by_uri(
        self, uri: str, provider_id: int | None = None
    ) -> CanonicalItem | None:
        """Find the oldest stored item with this URI, optionally per provider."""

        def _query() -> CanonicalItem | None:
            condition = ResearchItem.uri == uri
            if provider_id is not None:
                condition &= ResearchItem.provider == provider_id
            row = (
                ResearchItem.select()
                .where(condition)
                .order_by(ResearchItem.id)
                .first()
            )
            return _row_to_item(row) if row else None

        return await self._execute(_query, operation_name="get_item_by_uri", read_only=True)

    async def async_set_favorite(self, item_id: int, mark: bool) -> bool:
        """Set the favorite flag; returns whether a row was updated."""

        def _update() -> bool:
            updated = (
                ResearchItem.update(favorite=mark).where(ResearchItem.id == item_id).execute()
            )
            return updated > 0

        return await self._execute(_update, operation_name="set_favorite")

    async def async_set_notes(self, item_id: int, notes: str | None) -> bool:
        def _update() -> bool:
            updated = ResearchItem.update(notes=notes).where(ResearchItem.id == item_id).execute()
            return updated > 0

        return await self._execute(_update, operation_name="set_notes")

    async def async_get_item_tags(self, item_id: int) -> list[Tag]:
        return await self._execute(
            _tags_for, item_id, operation_name="get_item_tags", read_only=True
        )

    async def async_get_all_tags(self) -> list[Tag]:
        def _query() -> list[Tag]:
            return [Tag(row.tag_name) for row in TagModel.select().order_by(TagModel.tag_name)]

        return await self._execute(_query, operation_name="get_all_tags", read_only=True)

    async def async_list_items(
        self,
        *,
        tags: Sequence[str] | None = None,
        favorite_only: bool = False,
        limit: int | None = None,
        provider: str | None = None,
    ) -> list[tuple[CanonicalItem, list[Tag]]]:
        """List items newest first, each with its tags.

        Args:
            tags: Keep items carrying at least one of these tags
            favorite_only: Keep only favorited items
            limit: Maximum number of items returned
            provider: Keep only items from this provider name
        """

        def _query() -> list[tuple[CanonicalItem, list[Tag]]]:
            query = ResearchItem.select()
            if provider is not None:
                query = query.join(Provider).where(Provider.name == provider)
            if favorite_only:
                query = query.where(ResearchItem.favorite == True)  # noqa: E712
            if tags:
                tagged = ItemTag.select(ItemTag.item).where(ItemTag.tag.in_(list(tags)))
                query = query.where(ResearchItem.id.in_(tagged))
            query = query.order_by(ResearchItem.time_added.desc(), ResearchItem.id.desc())
            if limit is not None:
                query = query.limit(limit)
            return [(_row_to_item(row), _tags_for(row.id)) for row in query]

        return await self._execute(_query, operation_name="list_items", read_only=True)

    async def async_items_by_provider(self, provider: str) -> list[CanonicalItem]:
        rows = await self.async_list_items(provider=provider)
        return [item for item, _ in rows]

    async def async_count_items(self) -> int:
        def _query() -> int:
            return ResearchItem.select().count()

        return await self._execute(_query, operation_name="count_items", read_only=True)
