"""Handling of ``research://save?...`` links.

A browser bookmarklet opens ``research://save?url=<encoded>&provider=local&tags=a,b``;
the OS hands the link to ``pocket-research handle <link>``, which saves the
page through the normal add-item path. Registering the scheme with the
operating system is left to the user.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any
from urllib.parse import parse_qs, urlsplit

from pocket_research.adapters.registry import build_provider
from pocket_research.domain.exceptions.domain_exceptions import InvalidResearchUrlError
from pocket_research.domain.models.item import ProviderName
from pocket_research.infrastructure.persistence.sqlite.repositories.item_store import (
    open_item_store,
)
from pocket_research.sync.service import SyncService

if TYPE_CHECKING:
    from pocket_research.config.settings import AppConfig
    from pocket_research.domain.models.item import CanonicalItem

logger = logging.getLogger(__name__)

RESEARCH_SCHEME = "research"
SAVE_ACTION = "save"


@dataclass(frozen=True)
class SaveRequest:
    url: str
    provider: str = ProviderName.LOCAL.value
    tags: list[str] = field(default_factory=list)
    db_path: str | None = None


def _first(params: dict[str, list[str]], key: str) -> str | None:
    values = params.get(key)
    if not values:
        return None
    value = values[0].strip()
    return value or None


def parse_research_url(raw_url: str) -> SaveRequest:
    """Parse a ``research://save`` link.

    Raises:
        InvalidResearchUrlError: Wrong scheme, unknown action or no ``url`` parameter.
    """
    parts = urlsplit(raw_url.strip())
    if parts.scheme != RESEARCH_SCHEME:
        raise InvalidResearchUrlError(
            f"Not a research URL: {raw_url}", details={"scheme": parts.scheme}
        )
    # research://save?... puts the action in the netloc; research:save?... in the path
    action = (parts.netloc or parts.path).strip("/")
    if action != SAVE_ACTION:
        raise InvalidResearchUrlError(f"Unsupported research action '{action}'")

    params = parse_qs(parts.query, keep_blank_values=False)
    url = _first(params, "url")
    if url is None:
        raise InvalidResearchUrlError("Missing url parameter", details={"url": raw_url})

    tags_raw = _first(params, "tags")
    tags = [tag.strip() for tag in tags_raw.split(",") if tag.strip()] if tags_raw else []
    return SaveRequest(
        url=url,
        provider=_first(params, "provider") or ProviderName.LOCAL.value,
        tags=tags,
        db_path=_first(params, "db_path"),
    )


async def handle_url(
    raw_url: str,
    config: AppConfig,
    *,
    correlation_id: str | None = None,
    **service_options: Any,
) -> CanonicalItem:
    """Save the page referenced by a research link."""
    request = parse_research_url(raw_url)
    logger.info(
        "research_url_received",
        extra={"cid": correlation_id, "url": request.url, "provider": request.provider},
    )
    store = open_item_store(
        request.db_path or config.runtime.db_path,
        operation_timeout=config.runtime.db_operation_timeout,
        max_retries=config.runtime.db_max_retries,
    )
    secrets = await store.async_get_secrets()
    provider = build_provider(
        request.provider,
        pocket_config=config.pocket,
        secrets=secrets,
        correlation_id=correlation_id,
    )
    service = SyncService(store, correlation_id=correlation_id, **service_options)
    return await service.add_item(provider, request.url, request.tags)
