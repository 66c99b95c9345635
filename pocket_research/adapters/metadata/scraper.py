"""Best-effort title/description lookup for a URL."""

from __future__ import annotations

import logging
from pathlib import PurePosixPath
from urllib.parse import unquote, urlsplit

import httpx
from pydantic import BaseModel

from pocket_research.core.html_utils import extract_head_metadata
from pocket_research.domain.exceptions.domain_exceptions import TransportError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 15.0
USER_AGENT = "pocket-research/0.1 (+metadata)"


class WebpageMetadata(BaseModel):
    title: str = ""
    description: str = ""


def _file_name(url: str) -> str:
    path = urlsplit(url).path
    return unquote(PurePosixPath(path).name) if path else ""


def metadata_from_response(url: str, content_type: str, body: str) -> WebpageMetadata:
    """HTML yields ``<title>``/description; anything else the file name and MIME type."""
    mime = content_type.split(";", 1)[0].strip()
    if mime == "text/html":
        title, description = extract_head_metadata(body)
        return WebpageMetadata(title=title, description=description)
    return WebpageMetadata(title=_file_name(url), description=f"File type: {mime}")


async def fetch_metadata(
    url: str,
    *,
    timeout: float = DEFAULT_TIMEOUT,
    transport: httpx.AsyncBaseTransport | None = None,
) -> WebpageMetadata:
    """GET ``url`` and describe it.

    Raises:
        TransportError: If the page cannot be fetched.
    """
    try:
        async with httpx.AsyncClient(
            timeout=timeout,
            follow_redirects=True,
            headers={"User-Agent": USER_AGENT},
            transport=transport,
        ) as client:
            response = await client.get(url)
            response.raise_for_status()
    except httpx.HTTPStatusError as e:
        raise TransportError(
            f"Fetching metadata for {url} failed with HTTP {e.response.status_code}",
            status_code=e.response.status_code,
        ) from e
    except httpx.HTTPError as e:
        raise TransportError(f"Fetching metadata for {url} failed: {e}") from e

    content_type = response.headers.get("content-type", "")
    body = response.text if content_type.startswith("text/html") else ""
    metadata = metadata_from_response(url, content_type, body)
    logger.debug(
        "metadata_fetched",
        extra={"url": url, "content_type": content_type, "title": metadata.title},
    )
    return metadata
