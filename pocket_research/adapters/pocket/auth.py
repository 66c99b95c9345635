"""Pocket OAuth handshake for command-line use.

Pocket's flow for desktop apps: ask for a request code, send the user to the
authorize page, wait until they confirm, then trade the code for an access
token.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING
from urllib.parse import urlencode

from pydantic import ValidationError

from pocket_research.domain.exceptions.domain_exceptions import (
    AuthError,
    CredentialError,
    TransportError,
)
from pocket_research.domain.models.secrets import Secrets

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from pocket_research.adapters.pocket.client import PocketClient

logger = logging.getLogger(__name__)

AUTH_STATE = "pocket-research"
DEFAULT_AUTHORIZE_URL = "https://getpocket.com/auth/authorize"


async def console_prompt(authorize_url: str) -> None:
    """Print the authorization URL and block until the user presses Enter."""
    print(f"Follow the url to provide access:\n{authorize_url}")
    print("Press enter to continue...")
    await asyncio.to_thread(input)


def build_authorize_url(request_token: str, redirect_uri: str, base_url: str) -> str:
    query = urlencode({"request_token": request_token, "redirect_uri": redirect_uri})
    return f"{base_url}?{query}"


class PocketAuthenticator:
    """Run the request-code / authorize exchange against a ``PocketClient``."""

    def __init__(
        self,
        client: PocketClient,
        *,
        redirect_uri: str = "0.0.0.0",
        authorize_url: str = DEFAULT_AUTHORIZE_URL,
        prompt: Callable[[str], Awaitable[None]] = console_prompt,
    ) -> None:
        self._client = client
        self._redirect_uri = redirect_uri
        self._authorize_url = authorize_url
        self._prompt = prompt

    async def login(self) -> Secrets:
        """Perform the handshake and return the resulting credentials.

        Raises:
            CredentialError: If no consumer key is configured
            AuthError: If either network step fails or returns an undecodable reply
        """
        consumer_key = self._client.consumer_key
        if not consumer_key:
            raise CredentialError("A Pocket consumer key is required to authenticate")

        try:
            token = await self._client.request_token(self._redirect_uri, state=AUTH_STATE)
        except (TransportError, ValidationError) as e:
            raise AuthError(f"Could not obtain a Pocket request token: {e}") from e

        url = build_authorize_url(token.code, self._redirect_uri, self._authorize_url)
        logger.info("pocket_auth_waiting_for_user", extra={"authorize_url": url})
        await self._prompt(url)

        try:
            reply = await self._client.authorize(token.code)
        except (TransportError, ValidationError) as e:
            raise AuthError(f"Could not exchange the Pocket request token: {e}") from e
        except CredentialError as e:
            raise AuthError(f"Pocket did not authorize the request token: {e.message}") from e

        logger.info("pocket_auth_succeeded", extra={"username": reply.username})
        return Secrets(pocket_consumer_key=consumer_key, pocket_access_token=reply.access_token)
