"""Tests for provider adapters and the provider registry."""

from __future__ import annotations

import json
import unittest

import httpx
import pytest

from pocket_research.adapters.local.provider import LOCAL_LANG, LocalItem, LocalProvider
from pocket_research.adapters.pocket.models import PocketItem
from pocket_research.adapters.pocket.provider import PLACEHOLDER_URI, PocketProvider
from pocket_research.adapters.registry import build_provider
from pocket_research.config.integrations import PocketConfig
from pocket_research.domain.exceptions.domain_exceptions import (
    CredentialError,
    MissingUriError,
    ResponseDecodeError,
    UnknownProviderError,
    UnsupportedOperationError,
)
from pocket_research.domain.models.item import UNTITLED, ProviderName, Tag
from pocket_research.domain.models.secrets import Secrets
from tests.conftest import SAMPLE_TIME_ADDED, empty_page, no_sleep, pocket_item, pocket_page


def _pocket_provider(config: PocketConfig | None = None, **kwargs) -> PocketProvider:
    config = config or PocketConfig(consumer_key="ck", access_token="at", pace_delay_sec=0)
    return PocketProvider(config, Secrets(), sleep=no_sleep, retry_base_delay=0, **kwargs)


def _decoded(**overrides) -> PocketItem:
    return PocketItem.model_validate(pocket_item(99, **overrides))


# ==================== Pocket normalization ====================


class TestPocketToCanonical(unittest.TestCase):
    def test_maps_wire_fields(self):
        raw = _decoded(
            favorite="1",
            tags={"b": {"tag": "b"}, "a": {"tag": "a"}},
        )
        item, tags = _pocket_provider().to_canonical(raw)

        assert item.id == 99
        assert item.uri == "https://example.com/articles/99"
        assert item.title == "Article 99"
        assert item.excerpt == "Excerpt 99"
        assert item.time_added == SAMPLE_TIME_ADDED
        assert item.favorite is True
        assert item.lang == "en"
        assert item.notes is None
        assert tags == [Tag("a"), Tag("b")]

    def test_title_falls_back_to_resolved_title(self):
        item, _ = _pocket_provider().to_canonical(_decoded(given_title=""))
        assert item.title == "Resolved 99"

    def test_title_falls_back_to_untitled(self):
        item, _ = _pocket_provider().to_canonical(_decoded(given_title="", resolved_title=None))
        assert item.title == UNTITLED

    def test_uri_falls_back_to_resolved_url(self):
        item, _ = _pocket_provider().to_canonical(_decoded(given_url="garbage"))
        assert item.uri == "https://example.com/articles/99?ref=pocket"

    def test_missing_uri_uses_placeholder_by_default(self):
        item, _ = _pocket_provider().to_canonical(_decoded(given_url="", resolved_url=None))
        assert item.uri == PLACEHOLDER_URI

    def test_missing_uri_rejected_when_configured(self):
        config = PocketConfig(consumer_key="ck", access_token="at", missing_uri_policy="reject")
        provider = _pocket_provider(config)

        with pytest.raises(MissingUriError) as exc_info:
            provider.to_canonical(_decoded(given_url=None, resolved_url=None))

        assert exc_info.value.item_key == "99"

    def test_missing_time_added_defaults_to_now(self):
        item, _ = _pocket_provider().to_canonical(_decoded(time_added="0"))
        assert item.time_added > SAMPLE_TIME_ADDED

    def test_duplicate_and_blank_tags_dropped(self):
        raw = _decoded(tags=[{"tag": "x"}, {"tag": " "}, {"tag": "x"}, {"tag": "y"}])
        _, tags = _pocket_provider().to_canonical(raw)
        assert tags == [Tag("x"), Tag("y")]

    def test_saved_url_keeps_remote_id(self):
        entry = LocalItem(uri="https://a.example", title=None, tags=["t"], id=77)
        item, tags = _pocket_provider().to_canonical(entry)

        assert item.id == 77
        assert item.title == UNTITLED
        assert item.favorite is False
        assert tags == [Tag("t")]


class TestSecretsFallback(unittest.TestCase):
    def test_stored_secrets_win_over_config(self):
        config = PocketConfig(consumer_key="env-ck", access_token="env-at")
        provider = PocketProvider(config, Secrets(pocket_consumer_key="db-ck"))

        assert provider.secrets.pocket_consumer_key == "db-ck"
        assert provider.secrets.pocket_access_token == "env-at"


# ==================== Pocket network operations ====================


@pytest.mark.asyncio
async def test_fetch_items_pages_through_pocket():
    pages = [pocket_page(range(1, 31)), empty_page(), empty_page()]
    seen_offsets: list[int] = []

    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        seen_offsets.append(body["offset"])
        return httpx.Response(200, json=pages.pop(0) if pages else empty_page())

    provider = _pocket_provider(transport=httpx.MockTransport(handler))
    report = await provider.fetch_items()

    assert len(report.items) == 30
    assert seen_offsets == [0, 30, 60]


@pytest.mark.asyncio
async def test_fetch_items_without_token_is_credential_error():
    provider = PocketProvider(PocketConfig(consumer_key="ck"), Secrets())
    with pytest.raises(CredentialError):
        await provider.fetch_items()


@pytest.mark.asyncio
async def test_mark_favorite_sends_action():
    bodies: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(json.loads(request.content))
        return httpx.Response(200, json={"status": 1})

    provider = _pocket_provider(transport=httpx.MockTransport(handler))
    await provider.mark_favorite(123, False)

    assert bodies[0]["actions"][0]["item_id"] == "123"
    assert bodies[0]["actions"][0]["action"] == "unfavorite"


@pytest.mark.asyncio
async def test_add_item_returns_remote_id():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"item": {"item_id": "777"}, "status": 1})

    provider = _pocket_provider(transport=httpx.MockTransport(handler))

    assert await provider.add_item("https://a.example", ["x"]) == 777


@pytest.mark.asyncio
async def test_add_item_without_remote_id_is_refused():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"item": {}, "status": 1})

    provider = _pocket_provider(transport=httpx.MockTransport(handler))

    with pytest.raises(ResponseDecodeError):
        await provider.add_item("https://a.example", [])


@pytest.mark.asyncio
async def test_authenticate_replaces_secrets():
    replies = [
        httpx.Response(200, json={"code": "c0de"}),
        httpx.Response(200, json={"access_token": "tok", "username": "u"}),
    ]

    async def prompt(url: str) -> None:
        assert "request_token=c0de" in url

    provider = PocketProvider(
        PocketConfig(),
        Secrets(pocket_consumer_key="ck"),
        transport=httpx.MockTransport(lambda request: replies.pop(0)),
        prompt=prompt,
    )
    secrets = await provider.authenticate()

    assert secrets == Secrets(pocket_consumer_key="ck", pocket_access_token="tok")
    assert provider.secrets == secrets


# ==================== Local provider ====================


class TestLocalProvider(unittest.IsolatedAsyncioTestCase):
    async def test_fetch_is_unsupported(self):
        with pytest.raises(UnsupportedOperationError):
            await LocalProvider().fetch_items()

    async def test_add_and_favorite_are_local_only(self):
        provider = LocalProvider()
        assert await provider.add_item("https://a.example", ["x"]) is None
        assert await provider.mark_favorite(1, True) is None

    def test_to_canonical(self):
        entry = LocalItem(
            uri="https://a.example/doc.pdf",
            title="",
            excerpt=None,
            time_added=SAMPLE_TIME_ADDED,
            tags=["paper", "paper", "ml"],
        )
        item, tags = LocalProvider().to_canonical(entry)

        assert item.id is None
        assert item.title == UNTITLED
        assert item.excerpt == ""
        assert item.time_added == SAMPLE_TIME_ADDED
        assert item.lang == LOCAL_LANG
        assert item.favorite is False
        assert tags == [Tag("paper"), Tag("ml")]


# ==================== Registry ====================


class TestRegistry(unittest.TestCase):
    def test_builds_known_providers(self):
        config = PocketConfig()
        assert isinstance(
            build_provider("pocket", pocket_config=config, secrets=Secrets()), PocketProvider
        )
        assert isinstance(
            build_provider(ProviderName.LOCAL, pocket_config=config, secrets=Secrets()),
            LocalProvider,
        )

    def test_unknown_name(self):
        with pytest.raises(UnknownProviderError):
            build_provider("instapaper", pocket_config=PocketConfig(), secrets=Secrets())
