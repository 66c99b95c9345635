"""Pocket implementation of the provider adapter."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

from pocket_research.adapters.local.provider import LocalItem
from pocket_research.adapters.pocket.auth import PocketAuthenticator, console_prompt
from pocket_research.adapters.pocket.client import PocketClient
from pocket_research.adapters.pocket.fetcher import PocketFetcher
from pocket_research.adapters.pocket.models import PocketItem, PocketSendAction
from pocket_research.core.time_utils import unix_now
from pocket_research.domain.exceptions.domain_exceptions import (
    MissingUriError,
    ResponseDecodeError,
)
from pocket_research.domain.models.item import CanonicalItem, ProviderName, Tag

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Sequence

    import httpx

    from pocket_research.adapters.fetch_report import FetchReport
    from pocket_research.config.integrations import PocketConfig
    from pocket_research.domain.models.secrets import Secrets

logger = logging.getLogger(__name__)

PLACEHOLDER_URI = "#"


class PocketProvider:
    """Remote provider backed by the Pocket v3 API."""

    name = ProviderName.POCKET

    def __init__(
        self,
        config: PocketConfig,
        secrets: Secrets,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        prompt: Callable[[str], Awaitable[None]] = console_prompt,
        retry_base_delay: float | None = None,
        correlation_id: str | None = None,
    ) -> None:
        self._config = config
        self._secrets = secrets.with_fallbacks(config.consumer_key, config.access_token)
        self._transport = transport
        self._sleep = sleep
        self._prompt = prompt
        self._retry_base_delay = retry_base_delay
        self._cid = correlation_id

    @property
    def secrets(self) -> Secrets:
        return self._secrets

    def _client(self, *, require_token: bool = True) -> PocketClient:
        if require_token:
            consumer_key, access_token = self._secrets.require_pocket()
        else:
            consumer_key, access_token = self._secrets.pocket_consumer_key or "", None
        extra: dict[str, Any] = {}
        if self._retry_base_delay is not None:
            extra["retry_base_delay"] = self._retry_base_delay
        return PocketClient(
            consumer_key,
            access_token,
            api_url=self._config.api_url,
            timeout=self._config.timeout_sec,
            max_retries=self._config.max_retries,
            transport=self._transport,
            **extra,
        )

    async def authenticate(self) -> Secrets:
        async with self._client(require_token=False) as client:
            authenticator = PocketAuthenticator(
                client,
                redirect_uri=self._config.redirect_uri,
                authorize_url=self._config.authorize_url,
                prompt=self._prompt,
            )
            self._secrets = await authenticator.login()
        return self._secrets

    async def fetch_items(self, limit: int | None = None) -> FetchReport:
        async with self._client() as client:
            fetcher = PocketFetcher(
                client,
                page_size=self._config.page_size,
                max_empty_responses=self._config.max_empty_responses,
                max_consecutive_errors=self._config.max_consecutive_errors,
                pace_delay=self._config.pace_delay_sec,
                sleep=self._sleep,
                correlation_id=self._cid,
            )
            return await fetcher.fetch(limit)

    async def add_item(
        self, uri: str, tags: Sequence[str], title: str | None = None
    ) -> int | None:
        """Save ``uri`` on Pocket and return the id Pocket assigned.

        Raises:
            ResponseDecodeError: If Pocket accepted the URL without reporting an id.
        """
        async with self._client() as client:
            item_id = await client.add(uri, tags, title)
        if item_id is None:
            # stored Pocket rows always carry Pocket's own id
            raise ResponseDecodeError(
                "Pocket saved the URL but returned no item id", details={"uri": uri}
            )
        return item_id

    async def mark_favorite(self, item_id: int, mark: bool) -> None:
        async with self._client() as client:
            await client.send([PocketSendAction.favorite(item_id, mark)])

    def to_canonical(self, raw: PocketItem | LocalItem) -> tuple[CanonicalItem, list[Tag]]:
        """Map a decoded Pocket item, or a URL the user just saved, onto the canonical model.

        Raises:
            MissingUriError: When the item has no usable URL and the
                configured policy is ``reject``.
        """
        if isinstance(raw, LocalItem):
            saved = CanonicalItem(
                id=raw.id,
                uri=raw.uri,
                title=CanonicalItem.normalized_title(raw.title),
                excerpt=raw.excerpt or "",
                time_added=raw.time_added,
            )
            return saved, Tag.from_names(raw.tags)

        uri = raw.given_url or raw.resolved_url
        if not uri:
            if self._config.missing_uri_policy == "reject":
                raise MissingUriError(
                    f"Item {raw.item_id} has neither given_url nor resolved_url",
                    item_key=str(raw.item_id),
                    fields=["given_url", "resolved_url"],
                )
            uri = PLACEHOLDER_URI

        time_added = raw.time_added
        item = CanonicalItem(
            id=raw.item_id,
            uri=uri,
            title=CanonicalItem.normalized_title(raw.given_title, raw.resolved_title),
            excerpt=raw.excerpt or "",
            time_added=int(time_added.timestamp()) if time_added else unix_now(),
            favorite=raw.favorite,
            lang=raw.lang or None,
            notes=None,
        )
        return item, Tag.from_names(raw.tag_names)
