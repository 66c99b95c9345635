"""Construct provider adapters by name."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pocket_research.adapters.local.provider import LocalProvider
from pocket_research.adapters.pocket.provider import PocketProvider
from pocket_research.domain.exceptions.domain_exceptions import UnknownProviderError
from pocket_research.domain.models.item import ProviderName

if TYPE_CHECKING:
    from pocket_research.adapters.protocols import ProviderAdapter
    from pocket_research.config.integrations import PocketConfig
    from pocket_research.domain.models.secrets import Secrets


def build_provider(
    name: str | ProviderName,
    *,
    pocket_config: PocketConfig,
    secrets: Secrets,
    **pocket_options: Any,
) -> ProviderAdapter:
    """Return the adapter registered under ``name``.

    Raises:
        UnknownProviderError: For names that are not a known provider.
    """
    try:
        provider = ProviderName(name)
    except ValueError:
        raise UnknownProviderError(
            f"Unknown provider '{name}'", details={"provider": str(name)}
        ) from None
    if provider is ProviderName.POCKET:
        return PocketProvider(pocket_config, secrets, **pocket_options)
    return LocalProvider(secrets)
