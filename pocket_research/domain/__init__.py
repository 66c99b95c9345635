from pocket_research.domain.models.item import (
    UNTITLED,
    CanonicalItem,
    ItemLifecycle,
    ProviderName,
    Tag,
)
from pocket_research.domain.models.secrets import DEFAULT_USER_ID, Secrets

__all__ = [
    "DEFAULT_USER_ID",
    "UNTITLED",
    "CanonicalItem",
    "ItemLifecycle",
    "ProviderName",
    "Secrets",
    "Tag",
]
