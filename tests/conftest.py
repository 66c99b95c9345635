"""Shared fixtures and wire-data builders."""

from __future__ import annotations

from typing import Any

import pytest

from pocket_research.config.integrations import PocketConfig
from pocket_research.infrastructure.persistence.sqlite.repositories.item_store import (
    SqliteItemStore,
    open_item_store,
)

# 2021-08-21 17:00:00 UTC
SAMPLE_TIME_ADDED = 1629565200


def pocket_item(item_id: int, /, **overrides: Any) -> dict[str, Any]:
    """A /v3/get list entry shaped the way Pocket sends it (everything stringly typed)."""
    item: dict[str, Any] = {
        "item_id": str(item_id),
        "given_url": f"https://example.com/articles/{item_id}",
        "given_title": f"Article {item_id}",
        "resolved_url": f"https://example.com/articles/{item_id}?ref=pocket",
        "resolved_title": f"Resolved {item_id}",
        "favorite": "0",
        "status": "0",
        "excerpt": f"Excerpt {item_id}",
        "lang": "en",
        "time_added": str(SAMPLE_TIME_ADDED),
        "time_read": "0",
        "time_updated": str(SAMPLE_TIME_ADDED),
    }
    item.update(overrides)
    return item


def pocket_page(ids: range | list[int], **overrides: Any) -> dict[str, Any]:
    """Success envelope with the list in Pocket's object-keyed-by-id form."""
    return {
        "status": 1,
        "complete": 1,
        "list": {str(i): pocket_item(i, **overrides) for i in ids},
    }


def empty_page() -> dict[str, Any]:
    return {"status": 2, "complete": 1, "list": []}


class ScriptedPocketClient:
    """Stands in for PocketClient.get_page, replaying one payload per request."""

    def __init__(self, payloads: list[Any]) -> None:
        self._payloads = list(payloads)
        self.requests: list[tuple[int, int]] = []

    async def get_page(self, params: Any) -> Any:
        self.requests.append((params.offset, params.count))
        if not self._payloads:
            return empty_page()
        return self._payloads.pop(0)


async def no_sleep(_delay: float) -> None:
    return None


@pytest.fixture
def pocket_config() -> PocketConfig:
    return PocketConfig(
        consumer_key="ck-test",
        access_token="at-test",
        api_url="https://pocket.test/v3",
        pace_delay_sec=0.0,
        max_retries=0,
    )


@pytest.fixture
def store(tmp_path) -> SqliteItemStore:
    return open_item_store(str(tmp_path / "research.sqlite"), create=True)
