"""Public sync service: bulk provider sync plus the single-item mutations."""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING

from pocket_research.adapters.local.provider import LocalItem
from pocket_research.adapters.metadata.scraper import WebpageMetadata, fetch_metadata
from pocket_research.core.logging_utils import generate_correlation_id
from pocket_research.domain.exceptions.domain_exceptions import (
    ItemDecodeError,
    ItemNotFoundError,
    MissingUriError,
    StorageConflictError,
    TransportError,
)
from pocket_research.domain.models.item import ItemLifecycle, ProviderName
from pocket_research.sync.errors import record_error
from pocket_research.sync.models import SyncResult
from pocket_research.sync.upsert import ItemUpserter

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Sequence

    from pocket_research.adapters.protocols import ProviderAdapter
    from pocket_research.domain.models.item import CanonicalItem
    from pocket_research.sync.protocols import ItemStore

logger = logging.getLogger(__name__)


def _provider_key(name: ProviderName | str) -> str:
    return name.value if isinstance(name, ProviderName) else str(name)


class SyncService:
    """Drive providers and storage for one command invocation.

    Bulk sync never rewrites a stored row, so favorites and notes edited
    locally survive any number of re-syncs. Favorite changes reach storage
    only through ``mark_favorite``.
    """

    def __init__(
        self,
        store: ItemStore,
        *,
        metadata_fetcher: Callable[[str], Awaitable[WebpageMetadata]] = fetch_metadata,
        correlation_id: str | None = None,
    ) -> None:
        self._store = store
        self._fetch_metadata = metadata_fetcher
        self._cid = correlation_id or generate_correlation_id()
        self._upserter = ItemUpserter(store, correlation_id=self._cid)

    @property
    def correlation_id(self) -> str:
        return self._cid

    async def sync_provider(
        self, provider: ProviderAdapter, limit: int | None = None
    ) -> SyncResult:
        """Fetch everything ``provider`` offers and upsert it in provider order.

        Raises:
            UnknownProviderError: If the provider is not registered
            TransportError: If the fetch fails at the transport level
            CredentialError: If credentials are missing or rejected
        """
        started = time.monotonic()
        key = _provider_key(provider.name)
        provider_id = await self._store.async_get_provider_id(key)
        result = SyncResult(provider=key)

        logger.info("sync_started", extra={"cid": self._cid, "provider": key, "limit": limit})
        report = await provider.fetch_items(limit)

        result.items_fetched = len(report.items)
        result.fetch_aborted = report.aborted
        for message in report.envelope_errors:
            result.envelope_errors.append(message)
            record_error(result, f"Envelope error: {message}", retryable=True)
        for failure in report.decode_failures:
            text = f"Item {failure.item_key} at offset {failure.offset}: {failure.message}"
            result.decode_failures.append(text)
            record_error(result, text, retryable=False)

        for raw in report.items:
            try:
                item, tags = provider.to_canonical(raw)
            except ItemDecodeError as exc:
                result.items_failed += 1
                record_error(result, exc.message, retryable=False)
                logger.warning(
                    "sync_item_dropped",
                    extra={"cid": self._cid, "item_key": exc.item_key, "fields": exc.fields},
                )
                continue
            await self._upserter.upsert_item(item, tags, provider_id, result)

        result.duration_seconds = round(time.monotonic() - started, 3)
        logger.info(
            "sync_completed",
            extra={
                "cid": self._cid,
                "provider": key,
                "fetched": result.items_fetched,
                "inserted": result.items_inserted,
                "existing": result.items_skipped_existing,
                "dropped": result.items_dropped,
                "envelope_errors": len(result.envelope_errors),
                "duration_seconds": result.duration_seconds,
            },
        )
        return result

    async def add_item(
        self,
        provider: ProviderAdapter,
        uri: str,
        tags: Sequence[str] = (),
        title: str | None = None,
        excerpt: str | None = None,
    ) -> CanonicalItem:
        """Save one URL through ``provider`` and persist it locally.

        Remote providers receive the item first so the stored row carries the
        remote id. Missing title or excerpt is filled from page metadata.
        """
        if not uri.strip():
            raise MissingUriError("An item needs a URI")
        key = _provider_key(provider.name)
        provider_id = await self._store.async_get_provider_id(key)

        remote_id = await provider.add_item(uri, list(tags), title)

        if not title or excerpt is None:
            metadata = await self._metadata_for(uri)
            title = title or metadata.title
            excerpt = excerpt if excerpt is not None else metadata.description

        entry = LocalItem(uri=uri, title=title, excerpt=excerpt, tags=list(tags), id=remote_id)
        item, item_tags = provider.to_canonical(entry)

        result = SyncResult(provider=key)
        item_id = await self._upserter.upsert_item(item, item_tags, provider_id, result)
        if item_id is None:
            raise StorageConflictError(
                f"Could not store {uri}", details={"errors": result.errors}
            )

        stored = await self._store.async_get_item(item_id)
        logger.info(
            "item_saved",
            extra={
                "cid": self._cid,
                "provider": key,
                "item_id": item_id,
                "inserted": bool(result.items_inserted),
                "tag_failures": result.tag_failures,
            },
        )
        return stored or item

    async def mark_favorite(
        self, provider: ProviderAdapter, uri: str, mark: bool
    ) -> CanonicalItem:
        """Set the favorite flag remotely (when the provider has a remote) and locally.

        Raises:
            ItemNotFoundError: If no item of this provider has ``uri``
        """
        key = _provider_key(provider.name)
        provider_id = await self._store.async_get_provider_id(key)
        item = await self._require_item(uri, provider_id)

        await provider.mark_favorite(int(item.id), mark)
        await self._store.async_set_favorite(int(item.id), mark)
        logger.info(
            "item_favorite_set",
            extra={
                "cid": self._cid,
                "provider": key,
                "item_id": item.id,
                "mark": mark,
                "lifecycle": ItemLifecycle.FAVORITE_TOGGLED.value,
            },
        )
        item.favorite = mark
        return item

    async def update_notes(self, uri: str, notes: str | None) -> CanonicalItem:
        """Replace the local notes of an item; never pushed to a provider."""
        item = await self._require_item(uri, None)
        await self._store.async_set_notes(int(item.id), notes or None)
        logger.info(
            "item_notes_updated",
            extra={
                "cid": self._cid,
                "item_id": item.id,
                "lifecycle": ItemLifecycle.NOTES_UPDATED.value,
            },
        )
        item.notes = notes or None
        return item

    async def _require_item(self, uri: str, provider_id: int | None) -> CanonicalItem:
        item = await self._store.async_get_item_by_uri(uri, provider_id)
        if item is None or item.id is None:
            raise ItemNotFoundError(
                f"No stored item with URI {uri}", details={"uri": uri, "provider_id": provider_id}
            )
        return item

    async def _metadata_for(self, uri: str) -> WebpageMetadata:
        try:
            return await self._fetch_metadata(uri)
        except TransportError as exc:
            logger.warning(
                "metadata_fetch_failed", extra={"cid": self._cid, "uri": uri, "error": exc.message}
            )
            return WebpageMetadata()
