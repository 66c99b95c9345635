"""Pocket v3 API client."""

from __future__ import annotations

import asyncio
import logging
import random
from typing import TYPE_CHECKING, Any, TypeVar

import httpx

from pocket_research.adapters.pocket.models import (
    PocketAddRequest,
    PocketAuthorizeResponse,
    PocketCredentials,
    PocketGetParams,
    PocketRequestToken,
    PocketSendAction,
)
from pocket_research.core.logging_utils import truncate_log_content
from pocket_research.domain.exceptions.domain_exceptions import (
    CredentialError,
    ResponseDecodeError,
    TransportError,
)
from pocket_research.domain.models.secrets import ACCESS_TOKEN_HINT, CONSUMER_KEY_HINT

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Sequence
    from typing import Self

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_API_URL = "https://getpocket.com/v3"

# HTTP status codes that should trigger a retry
RETRYABLE_STATUS_CODES = {408, 429, 500, 502, 503, 504}
CREDENTIAL_STATUS_CODES = {401, 403}

# Default retry configuration
DEFAULT_MAX_RETRIES = 3
DEFAULT_BASE_DELAY = 1.0  # seconds
DEFAULT_MAX_DELAY = 30.0  # seconds
DEFAULT_JITTER = 0.1  # 10% jitter


def _is_retryable_error(exc: Exception) -> bool:
    """Check if an exception is retryable.

    Args:
        exc: The exception to check

    Returns:
        True if the error should be retried
    """
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code in RETRYABLE_STATUS_CODES
    return isinstance(exc, (httpx.ConnectError, httpx.TimeoutException))


def _calculate_delay(attempt: int, base_delay: float, max_delay: float, jitter: float) -> float:
    """Calculate delay with exponential backoff and jitter.

    Args:
        attempt: Current attempt number (0-indexed)
        base_delay: Base delay in seconds
        max_delay: Maximum delay in seconds
        jitter: Jitter factor (0.1 = 10% random variation)

    Returns:
        Delay in seconds
    """
    delay = min(base_delay * (2**attempt), max_delay)
    jitter_amount = delay * jitter * random.random()
    return delay + jitter_amount


def _status_of(exc: BaseException) -> int | None:
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code
    return None


async def retry_with_backoff(
    func: Callable[[], Awaitable[T]],
    *,
    max_retries: int = DEFAULT_MAX_RETRIES,
    base_delay: float = DEFAULT_BASE_DELAY,
    max_delay: float = DEFAULT_MAX_DELAY,
    jitter: float = DEFAULT_JITTER,
    operation_name: str = "operation",
) -> T:
    """Execute an async function with exponential backoff retry.

    Args:
        func: Async function to execute
        max_retries: Maximum number of retry attempts
        base_delay: Base delay between retries in seconds
        max_delay: Maximum delay between retries
        jitter: Random jitter factor to add to delay
        operation_name: Name of operation for logging

    Returns:
        Result of the function

    Raises:
        TransportError: If all retries are exhausted
    """
    last_exception: Exception | None = None

    for attempt in range(max_retries + 1):
        try:
            return await func()
        except Exception as e:
            last_exception = e

            if not _is_retryable_error(e):
                raise

            if attempt == max_retries:
                logger.error(
                    "pocket_retry_exhausted",
                    extra={
                        "operation": operation_name,
                        "attempts": attempt + 1,
                        "error": str(e),
                    },
                )
                raise TransportError(
                    f"{operation_name} failed after {attempt + 1} attempts: {e}",
                    status_code=_status_of(e),
                ) from e

            delay = _calculate_delay(attempt, base_delay, max_delay, jitter)
            logger.warning(
                "pocket_retry_attempt",
                extra={
                    "operation": operation_name,
                    "attempt": attempt + 1,
                    "max_retries": max_retries,
                    "delay_seconds": round(delay, 2),
                    "error": str(e),
                },
            )
            await asyncio.sleep(delay)

    raise TransportError(f"{operation_name} failed") from last_exception


class PocketClient:
    """Async HTTP client for the Pocket v3 API.

    Every endpoint is a JSON ``POST``; Pocket only answers in JSON when the
    ``X-Accept`` header asks for it.
    """

    def __init__(
        self,
        consumer_key: str,
        access_token: str | None = None,
        *,
        api_url: str = DEFAULT_API_URL,
        timeout: float = 30.0,
        max_retries: int = DEFAULT_MAX_RETRIES,
        retry_base_delay: float = DEFAULT_BASE_DELAY,
        retry_max_delay: float = DEFAULT_MAX_DELAY,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize Pocket client.

        Args:
            consumer_key: Application consumer key
            access_token: User access token, required for item endpoints
            api_url: Base URL of the v3 API
            timeout: Request timeout in seconds
            max_retries: Maximum number of retry attempts for transient failures
            retry_base_delay: Base delay between retries in seconds
            retry_max_delay: Maximum delay between retries in seconds
            transport: Optional httpx transport (tests pass a MockTransport)
        """
        self.api_url = api_url.rstrip("/")
        self.consumer_key = consumer_key
        self.access_token = access_token
        self.timeout = timeout
        self.max_retries = max_retries
        self.retry_base_delay = retry_base_delay
        self.retry_max_delay = retry_max_delay
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> Self:
        """Enter async context."""
        self._client = httpx.AsyncClient(
            base_url=self.api_url,
            headers={
                "Content-Type": "application/json; charset=UTF-8",
                "X-Accept": "application/json",
            },
            timeout=self.timeout,
            transport=self._transport,
        )
        return self

    async def __aexit__(self, *args: object) -> None:
        """Exit async context."""
        if self._client:
            await self._client.aclose()
            self._client = None

    @property
    def client(self) -> httpx.AsyncClient:
        """Get the HTTP client."""
        if self._client is None:
            raise TransportError("Client not initialized. Use async context manager.")
        return self._client

    def _credentials(self) -> dict[str, str]:
        if not self.consumer_key:
            raise CredentialError(CONSUMER_KEY_HINT)
        if not self.access_token:
            raise CredentialError(ACCESS_TOKEN_HINT)
        return PocketCredentials(
            consumer_key=self.consumer_key, access_token=self.access_token
        ).model_dump()

    async def _post(self, path: str, body: dict[str, Any], operation_name: str) -> Any:
        """POST ``body`` to ``path`` with retry and return the decoded JSON.

        Raises:
            CredentialError: On 401/403
            TransportError: On network failure or any other non-success status
            ResponseDecodeError: If the body is not JSON
        """

        async def _call() -> httpx.Response:
            response = await self.client.post(path, json=body)
            response.raise_for_status()
            return response

        try:
            response = await retry_with_backoff(
                _call,
                max_retries=self.max_retries,
                base_delay=self.retry_base_delay,
                max_delay=self.retry_max_delay,
                operation_name=operation_name,
            )
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            reason = e.response.headers.get("X-Error") or e.response.reason_phrase
            if status in CREDENTIAL_STATUS_CODES:
                raise CredentialError(
                    f"Pocket rejected the credentials ({status}: {reason}); "
                    "run `pocket-research pocket auth --key <KEY>`",
                    details={"status_code": status, "operation": operation_name},
                ) from e
            raise TransportError(
                f"{operation_name} failed with HTTP {status}: {reason}", status_code=status
            ) from e
        except httpx.HTTPError as e:
            raise TransportError(f"{operation_name} failed: {e}") from e

        try:
            return response.json()
        except ValueError as e:
            raise ResponseDecodeError(
                f"{operation_name} returned a non-JSON body",
                status_code=response.status_code,
                details={"body": truncate_log_content(response.text)},
            ) from e

    async def request_token(
        self, redirect_uri: str, state: str | None = None
    ) -> PocketRequestToken:
        """Obtain a request code (first OAuth step)."""
        body = {"consumer_key": self.consumer_key, "redirect_uri": redirect_uri}
        if state is not None:
            body["state"] = state
        data = await self._post("/oauth/request", body, "oauth_request")
        return PocketRequestToken.model_validate(data)

    async def authorize(self, code: str) -> PocketAuthorizeResponse:
        """Exchange an approved request code for an access token."""
        body = {"consumer_key": self.consumer_key, "code": code}
        data = await self._post("/oauth/authorize", body, "oauth_authorize")
        return PocketAuthorizeResponse.model_validate(data)

    async def get_page(self, params: PocketGetParams) -> Any:
        """Fetch one page of items; the raw JSON is returned for envelope parsing."""
        body = {**self._credentials(), **params.model_dump(by_alias=True)}
        return await self._post("/get", body, "get_items")

    async def add(
        self, url: str, tags: Sequence[str] = (), title: str | None = None
    ) -> int | None:
        """Save a URL to Pocket.

        Returns:
            The Pocket item id, or None when the reply does not carry one.
        """
        request = PocketAddRequest(url=url, title=title, tags=list(tags) or None)
        body = {**self._credentials(), **request.model_dump(exclude_none=True)}
        data = await self._post("/add", body, "add_item")
        item = data.get("item") if isinstance(data, dict) else None
        raw_id = item.get("item_id") if isinstance(item, dict) else None
        logger.info("pocket_item_added", extra={"url": url, "item_id": raw_id})
        if raw_id in (None, ""):
            return None
        try:
            return int(raw_id)
        except (TypeError, ValueError) as e:
            raise ResponseDecodeError(f"add_item returned a non-numeric item_id: {raw_id!r}") from e

    async def send(self, actions: Sequence[PocketSendAction]) -> None:
        """Apply a batch of modify actions."""
        body = {
            **self._credentials(),
            "actions": [action.model_dump() for action in actions],
        }
        await self._post("/send", body, "send_actions")
        logger.info("pocket_actions_sent", extra={"count": len(actions)})
