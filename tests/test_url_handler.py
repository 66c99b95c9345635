"""Tests for research:// link handling."""

from __future__ import annotations

import unittest
from unittest.mock import AsyncMock

import pytest

from pocket_research.adapters.metadata.scraper import WebpageMetadata
from pocket_research.config.integrations import PocketConfig
from pocket_research.config.settings import AppConfig, RuntimeConfig
from pocket_research.domain.exceptions.domain_exceptions import (
    InvalidResearchUrlError,
    ResearchError,
    UnknownProviderError,
)
from pocket_research.handler.url_handler import SaveRequest, handle_url, parse_research_url
from pocket_research.infrastructure.persistence.sqlite.repositories.item_store import (
    open_item_store,
)


class TestParseResearchUrl(unittest.TestCase):
    def test_full_link(self):
        request = parse_research_url(
            "research://save?url=https%3A%2F%2Fexample.com%2Fa%3Fb%3D1&provider=pocket&tags=x,%20y"
        )
        assert request == SaveRequest(
            url="https://example.com/a?b=1", provider="pocket", tags=["x", "y"]
        )

    def test_defaults_to_local_provider(self):
        request = parse_research_url("research://save?url=https://example.com")
        assert request.provider == "local"
        assert request.tags == []
        assert request.db_path is None

    def test_path_form_and_db_override(self):
        request = parse_research_url(
            "research:save?url=https://example.com&db_path=/tmp/r.sqlite"
        )
        assert request.url == "https://example.com"
        assert request.db_path == "/tmp/r.sqlite"

    def test_wrong_scheme(self):
        with pytest.raises(InvalidResearchUrlError):
            parse_research_url("https://save?url=https://example.com")

    def test_unknown_action(self):
        with pytest.raises(InvalidResearchUrlError):
            parse_research_url("research://delete?url=https://example.com")

    def test_missing_url(self):
        with pytest.raises(InvalidResearchUrlError):
            parse_research_url("research://save?tags=a")


def _config(db_path: str) -> AppConfig:
    return AppConfig(runtime=RuntimeConfig(db_path=db_path), pocket=PocketConfig())


@pytest.mark.asyncio
async def test_handle_url_saves_locally(tmp_path):
    db_path = str(tmp_path / "research.sqlite")
    open_item_store(db_path, create=True)
    metadata = AsyncMock(return_value=WebpageMetadata(title="Saved Page", description="d"))

    item = await handle_url(
        "research://save?url=https://example.com/page&tags=later",
        _config(db_path),
        correlation_id="cid",
        metadata_fetcher=metadata,
    )

    assert item.title == "Saved Page"
    store = open_item_store(db_path)
    stored = await store.async_get_item_by_uri("https://example.com/page")
    assert stored is not None
    assert [tag.tag_name for tag in await store.async_get_item_tags(stored.id)] == ["later"]


@pytest.mark.asyncio
async def test_handle_url_requires_existing_database(tmp_path):
    with pytest.raises(ResearchError):
        await handle_url(
            "research://save?url=https://example.com",
            _config(str(tmp_path / "missing.sqlite")),
        )


@pytest.mark.asyncio
async def test_handle_url_unknown_provider(tmp_path):
    db_path = str(tmp_path / "research.sqlite")
    open_item_store(db_path, create=True)

    with pytest.raises(UnknownProviderError):
        await handle_url(
            "research://save?url=https://example.com&provider=delicious", _config(db_path)
        )
