"""Insert-if-absent persistence of one canonical item and its tags."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pocket_research.domain.exceptions.domain_exceptions import (
    IdCollisionError,
    StorageConflictError,
)
from pocket_research.domain.models.item import ItemLifecycle
from pocket_research.sync.errors import record_error

if TYPE_CHECKING:
    from collections.abc import Sequence

    from pocket_research.domain.models.item import CanonicalItem, Tag
    from pocket_research.sync.models import SyncResult
    from pocket_research.sync.protocols import ItemStore

logger = logging.getLogger(__name__)


class ItemUpserter:
    """Persist items without touching rows that already exist.

    A stored row keeps its ``favorite`` and ``notes`` no matter what the
    provider sends later. Tags are linked one by one; a failed tag is
    recorded and the remaining tags are still attempted.
    """

    def __init__(self, store: ItemStore, *, correlation_id: str | None = None) -> None:
        self._store = store
        self._cid = correlation_id

    async def upsert_item(
        self,
        item: CanonicalItem,
        tags: Sequence[Tag],
        provider_id: int,
        result: SyncResult,
    ) -> int | None:
        """Store ``item`` and link ``tags``; returns the item id or None if it was dropped."""
        try:
            item_id, inserted = await self._store.async_insert_item_if_absent(item, provider_id)
        except StorageConflictError as exc:
            result.items_failed += 1
            collision = isinstance(exc, IdCollisionError)
            record_error(
                result, f"Item {item.id or item.uri}: {exc.message}", retryable=not collision
            )
            logger.warning(
                "sync_item_id_collision" if collision else "sync_item_conflict",
                extra={"cid": self._cid, "item_id": item.id, "uri": item.uri},
            )
            return None

        if inserted:
            result.items_inserted += 1
        else:
            result.items_skipped_existing += 1

        for tag in tags:
            try:
                await self._store.async_upsert_tag(tag.tag_name)
                if await self._store.async_link_item_tag(item_id, tag.tag_name):
                    result.tags_linked += 1
            except StorageConflictError as exc:
                result.tag_failures += 1
                record_error(
                    result, f"Tag '{tag.tag_name}' on item {item_id}: {exc.message}", retryable=True
                )
                logger.warning(
                    "sync_tag_link_failed",
                    extra={"cid": self._cid, "item_id": item_id, "tag": tag.tag_name},
                )

        logger.debug(
            "sync_item_upserted",
            extra={
                "cid": self._cid,
                "item_id": item_id,
                "inserted": inserted,
                "lifecycle": ItemLifecycle.INSERTED.value,
                "tags": len(tags),
            },
        )
        return item_id
