"""Tests for the SQLite repositories behind the item store."""

from __future__ import annotations

import pytest

from pocket_research.db.models import ResearchItem
from pocket_research.db.session import DatabaseSessionManager
from pocket_research.domain.exceptions.domain_exceptions import (
    IdCollisionError,
    ResearchError,
    StorageConflictError,
    UnknownProviderError,
)
from pocket_research.domain.models.item import CanonicalItem, Tag
from pocket_research.domain.models.secrets import Secrets
from pocket_research.infrastructure.persistence.sqlite.repositories.item_store import (
    open_item_store,
)


def _item(
    item_id: int | None, uri: str, time_added: int = 1_600_000_000, **kwargs
) -> CanonicalItem:
    return CanonicalItem(
        id=item_id, uri=uri, title=kwargs.pop("title", uri), time_added=time_added, **kwargs
    )


# ==================== Opening and migrating ====================


def test_open_missing_database_without_create(tmp_path):
    with pytest.raises(ResearchError):
        open_item_store(str(tmp_path / "absent.sqlite"))


@pytest.mark.asyncio
async def test_migrate_seeds_providers_and_secrets(store):
    assert await store.async_list_providers() == ["pocket", "local"]
    assert await store.async_get_secrets() == Secrets()


@pytest.mark.asyncio
async def test_migrate_is_idempotent(tmp_path):
    path = str(tmp_path / "research.sqlite")
    open_item_store(path, create=True)
    store = open_item_store(path)

    assert await store.async_list_providers() == ["pocket", "local"]


def test_sqlite_version_reported(tmp_path):
    session = DatabaseSessionManager(str(tmp_path / "v.sqlite"))
    session.migrate()
    assert session.sqlite_version().count(".") >= 1


@pytest.mark.asyncio
async def test_unknown_provider(store):
    with pytest.raises(UnknownProviderError):
        await store.async_get_provider_id("instapaper")


# ==================== Secrets ====================


@pytest.mark.asyncio
async def test_secrets_round_trip_and_replace(store):
    await store.async_set_secrets(Secrets(pocket_consumer_key="ck", pocket_access_token="at"))
    await store.async_set_secrets(Secrets(pocket_consumer_key="ck2", pocket_access_token="at2"))

    secrets = await store.async_get_secrets()
    assert secrets.pocket_consumer_key == "ck2"
    assert secrets.pocket_access_token == "at2"


# ==================== Items ====================


@pytest.mark.asyncio
async def test_insert_if_absent_never_overwrites(store):
    pocket_id = await store.async_get_provider_id("pocket")

    first = await store.async_insert_item_if_absent(_item(10, "https://a.example"), pocket_id)
    again = await store.async_insert_item_if_absent(
        _item(10, "https://changed.example", title="Changed", favorite=True), pocket_id
    )

    assert first == (10, True)
    assert again == (10, False)
    stored = await store.async_get_item(10)
    assert stored.uri == "https://a.example"
    assert stored.favorite is False
    assert await store.async_count_items() == 1


@pytest.mark.asyncio
async def test_local_items_get_storage_ids_and_dedupe_on_uri(store):
    local_id = await store.async_get_provider_id("local")

    item_id, inserted = await store.async_insert_item_if_absent(
        _item(None, "https://local.example"), local_id
    )
    same_id, inserted_again = await store.async_insert_item_if_absent(
        _item(None, "https://local.example"), local_id
    )

    assert inserted is True
    assert inserted_again is False
    assert same_id == item_id
    assert item_id > 0


@pytest.mark.asyncio
async def test_remote_id_taken_by_another_provider_is_a_collision(store):
    local_id = await store.async_get_provider_id("local")
    pocket_id = await store.async_get_provider_id("pocket")
    taken, _ = await store.async_insert_item_if_absent(
        _item(None, "https://mine.example"), local_id
    )

    with pytest.raises(IdCollisionError):
        await store.async_insert_item_if_absent(_item(taken, "https://remote.example"), pocket_id)

    assert (await store.async_get_item(taken)).uri == "https://mine.example"
    assert await store.async_items_by_provider("pocket") == []


@pytest.mark.asyncio
async def test_tags_are_linked_once(store):
    pocket_id = await store.async_get_provider_id("pocket")
    await store.async_insert_item_if_absent(_item(1, "https://a.example"), pocket_id)

    await store.async_upsert_tag("rust")
    await store.async_upsert_tag("rust")
    await store.async_upsert_tag("async")
    assert await store.async_link_item_tag(1, "rust") is True
    assert await store.async_link_item_tag(1, "rust") is False
    assert await store.async_link_item_tag(1, "async") is True

    assert await store.async_get_item_tags(1) == [Tag("async"), Tag("rust")]
    assert await store.async_get_all_tags() == [Tag("async"), Tag("rust")]


@pytest.mark.asyncio
async def test_linking_unknown_tag_is_conflict(store):
    pocket_id = await store.async_get_provider_id("pocket")
    await store.async_insert_item_if_absent(_item(1, "https://a.example"), pocket_id)

    with pytest.raises(StorageConflictError):
        await store.async_link_item_tag(1, "never-created")


@pytest.mark.asyncio
async def test_favorite_and_notes_updates(store):
    pocket_id = await store.async_get_provider_id("pocket")
    await store.async_insert_item_if_absent(_item(5, "https://a.example"), pocket_id)

    assert await store.async_set_favorite(5, True) is True
    assert await store.async_set_notes(5, "read later") is True
    assert await store.async_set_favorite(404, True) is False

    stored = await store.async_get_item(5)
    assert stored.favorite is True
    assert stored.notes == "read later"


@pytest.mark.asyncio
async def test_get_item_by_uri_scoped_to_provider(store):
    pocket_id = await store.async_get_provider_id("pocket")
    local_id = await store.async_get_provider_id("local")
    await store.async_insert_item_if_absent(_item(7, "https://shared.example"), pocket_id)

    assert (await store.async_get_item_by_uri("https://shared.example")).id == 7
    assert await store.async_get_item_by_uri("https://shared.example", local_id) is None
    assert await store.async_get_item_by_uri("https://missing.example") is None


@pytest.mark.asyncio
async def test_list_items_newest_first_with_filters(store):
    pocket_id = await store.async_get_provider_id("pocket")
    local_id = await store.async_get_provider_id("local")
    await store.async_insert_item_if_absent(_item(1, "https://old.example", 100), pocket_id)
    await store.async_insert_item_if_absent(
        _item(2, "https://new.example", 300, favorite=True), pocket_id
    )
    await store.async_insert_item_if_absent(_item(None, "https://mid.example", 200), local_id)
    for tag in ("ml", "rust"):
        await store.async_upsert_tag(tag)
    await store.async_link_item_tag(1, "ml")
    await store.async_link_item_tag(2, "rust")

    rows = await store.async_list_items()
    assert [item.uri for item, _ in rows] == [
        "https://new.example",
        "https://mid.example",
        "https://old.example",
    ]
    assert rows[0][1] == [Tag("rust")]

    tagged = await store.async_list_items(tags=["ml", "rust"])
    assert [item.id for item, _ in tagged] == [2, 1]

    favorites = await store.async_list_items(favorite_only=True)
    assert [item.id for item, _ in favorites] == [2]

    assert len(await store.async_list_items(limit=1)) == 1

    local_items = await store.async_items_by_provider("local")
    assert [item.uri for item in local_items] == ["https://mid.example"]


@pytest.mark.asyncio
async def test_rows_are_committed(store, tmp_path):
    pocket_id = await store.async_get_provider_id("pocket")
    await store.async_insert_item_if_absent(_item(3, "https://a.example"), pocket_id)

    reopened = open_item_store(str(tmp_path / "research.sqlite"))
    assert await reopened.async_count_items() == 1
    with DatabaseSessionManager(str(tmp_path / "research.sqlite")).connection_context():
        assert ResearchItem.select().where(ResearchItem.id == 3).count() == 1
