"""Error taxonomy for ingestion and synchronization.

Callers branch on the class, never on the message text. Envelope and
item-level errors are recoverable and only ever recorded; the others abort
the current command.
"""

from __future__ import annotations

from typing import Any


class ResearchError(Exception):
    """Base exception for all pocket-research errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class CredentialError(ResearchError):
    """Consumer key or access token missing, or rejected by the provider."""


class AuthError(CredentialError):
    """The OAuth-style handshake failed or returned something undecodable."""


class TransportError(ResearchError):
    """Network failure or unexpected HTTP status talking to a provider."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.status_code = status_code


class ResponseDecodeError(TransportError):
    """Response body is not JSON or matches neither envelope shape."""


class EnvelopeError(ResearchError):
    """Provider answered with an error envelope for one page."""


class ItemDecodeError(ResearchError):
    """A single wire item failed tolerant decoding."""

    def __init__(
        self,
        message: str,
        *,
        item_key: str | None = None,
        fields: list[str] | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.item_key = item_key
        self.fields = fields or []


class MissingUriError(ItemDecodeError):
    """Item carries neither a usable given URL nor a resolved URL."""


class StorageConflictError(ResearchError):
    """Insert collided with an existing row; absorbed by insert-if-absent."""


class IdCollisionError(StorageConflictError):
    """Incoming id already belongs to an item of another provider."""


class UnknownProviderError(ResearchError):
    """Provider name is not registered in the providers table."""


class ItemNotFoundError(ResearchError):
    """No stored item matches the requested URI or id."""


class UnsupportedOperationError(ResearchError):
    """Capability not offered by this provider."""


class InvalidResearchUrlError(ResearchError):
    """A research:// URL is malformed or missing required parameters."""


RECOVERABLE_ERRORS: tuple[type[ResearchError], ...] = (
    EnvelopeError,
    ItemDecodeError,
    StorageConflictError,
)


def is_recoverable(exc: BaseException) -> bool:
    return isinstance(exc, RECOVERABLE_ERRORS)
