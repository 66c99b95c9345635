"""Paginated retrieval of a Pocket list.

Pocket pages by ``offset``/``count`` and gives no reliable end-of-list
marker, so the loop stops after a run of empty pages. Error envelopes and
malformed items are recorded in the report rather than failing the run;
only transport-level failures propagate.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from pocket_research.adapters.fetch_report import FetchReport, ItemDecodeFailure
from pocket_research.adapters.pocket.models import (
    ErrorEnvelope,
    PocketGetParams,
    PocketItem,
    parse_envelope,
)
from pocket_research.domain.exceptions.domain_exceptions import ItemDecodeError

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from pocket_research.adapters.pocket.client import PocketClient

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 30
DEFAULT_MAX_EMPTY_RESPONSES = 2
DEFAULT_MAX_CONSECUTIVE_ERRORS: int | None = None
DEFAULT_PACE_DELAY = 0.1


def decode_item(key: str, raw: Any) -> PocketItem:
    """Decode one wire item, naming every offending field on failure.

    Raises:
        ItemDecodeError: If the item cannot be decoded.
    """
    if not isinstance(raw, dict):
        raise ItemDecodeError(
            f"Item {key} is a {type(raw).__name__}, not an object", item_key=key
        )
    try:
        return PocketItem.model_validate(raw)
    except ValidationError as e:
        fields = [".".join(str(part) for part in err["loc"]) or "<item>" for err in e.errors()]
        raise ItemDecodeError(
            f"Item {key} failed to decode: {', '.join(fields)}",
            item_key=key,
            fields=fields,
            details={"errors": [err["msg"] for err in e.errors()]},
        ) from e


class PocketFetcher:
    """Pull every item (or the first ``limit``) from a Pocket account."""

    def __init__(
        self,
        client: PocketClient,
        *,
        page_size: int = DEFAULT_PAGE_SIZE,
        max_empty_responses: int = DEFAULT_MAX_EMPTY_RESPONSES,
        max_consecutive_errors: int | None = DEFAULT_MAX_CONSECUTIVE_ERRORS,
        pace_delay: float = DEFAULT_PACE_DELAY,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        correlation_id: str | None = None,
    ) -> None:
        self._client = client
        self._page_size = page_size
        self._max_empty_responses = max_empty_responses
        self._max_consecutive_errors = max_consecutive_errors
        self._pace_delay = pace_delay
        self._sleep = sleep
        self._cid = correlation_id

    async def fetch(self, limit: int | None = None) -> FetchReport:
        """Run the pagination loop.

        Args:
            limit: Stop once this many items were decoded (None for all)

        Returns:
            FetchReport with items in provider order plus skipped pages/items

        Raises:
            TransportError: On network failure after retries
            CredentialError: If Pocket rejects the credentials
            ResponseDecodeError: If a body is not a recognisable envelope
        """
        report = FetchReport()
        if limit is not None and limit <= 0:
            return report

        offset = 0
        empty_streak = 0
        consecutive_errors = 0

        while True:
            logger.debug("pocket_page_request", extra={"cid": self._cid, "offset": offset})
            payload = await self._client.get_page(
                PocketGetParams(count=self._page_size, offset=offset)
            )
            report.pages_requested += 1
            envelope = parse_envelope(payload)

            if isinstance(envelope, ErrorEnvelope):
                consecutive_errors += 1
                report.envelope_errors.append(envelope.error)
                logger.warning(
                    "pocket_envelope_error",
                    extra={
                        "cid": self._cid,
                        "offset": offset,
                        "error": envelope.error,
                        "consecutive": consecutive_errors,
                    },
                )
                if (
                    self._max_consecutive_errors is not None
                    and consecutive_errors >= self._max_consecutive_errors
                ):
                    report.aborted = True
                    logger.error(
                        "pocket_fetch_aborted",
                        extra={"cid": self._cid, "offset": offset, "errors": consecutive_errors},
                    )
                    break
                # same offset is requested again
                await self._sleep(self._pace_delay)
                continue

            consecutive_errors = 0
            if envelope.raw_items is None:
                logger.info("pocket_page_without_list", extra={"cid": self._cid, "offset": offset})

            page = self._decode_page(envelope.raw_items or [], offset, report)
            if page:
                empty_streak = 0
                report.items.extend(page)
            else:
                empty_streak += 1
                logger.info(
                    "pocket_empty_page",
                    extra={"cid": self._cid, "offset": offset, "streak": empty_streak},
                )
                if empty_streak >= self._max_empty_responses:
                    break

            offset += self._page_size

            if limit is not None and len(report.items) >= limit:
                del report.items[limit:]
                break

            await self._sleep(self._pace_delay)

        logger.info(
            "pocket_fetch_complete",
            extra={
                "cid": self._cid,
                "items": len(report.items),
                "pages": report.pages_requested,
                "envelope_errors": len(report.envelope_errors),
                "decode_failures": len(report.decode_failures),
                "aborted": report.aborted,
            },
        )
        return report

    def _decode_page(
        self, entries: list[tuple[str, Any]], offset: int, report: FetchReport
    ) -> list[PocketItem]:
        items: list[PocketItem] = []
        for key, raw in entries:
            try:
                items.append(decode_item(key, raw))
            except ItemDecodeError as e:
                report.decode_failures.append(
                    ItemDecodeFailure(
                        item_key=key, offset=offset, fields=e.fields, message=e.message
                    )
                )
                logger.warning(
                    "pocket_item_decode_failed",
                    extra={
                        "cid": self._cid,
                        "offset": offset,
                        "item_key": key,
                        "fields": e.fields,
                    },
                )
        return items
