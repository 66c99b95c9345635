"""SQLite repository adapters.

This package contains repository adapters that implement the storage
protocols used by the sync engine, with SQLite/Peewee as the persistence
layer.
"""

from pocket_research.infrastructure.persistence.sqlite.repositories.item_repository import (
    SqliteItemRepositoryAdapter,
)
from pocket_research.infrastructure.persistence.sqlite.repositories.item_store import (
    SqliteItemStore,
    open_item_store,
)
from pocket_research.infrastructure.persistence.sqlite.repositories.provider_repository import (
    SqliteProviderRepositoryAdapter,
)
from pocket_research.infrastructure.persistence.sqlite.repositories.secrets_repository import (
    SqliteSecretsRepositoryAdapter,
)

__all__ = [
    "SqliteItemRepositoryAdapter",
    "SqliteItemStore",
    "SqliteProviderRepositoryAdapter",
    "SqliteSecretsRepositoryAdapter",
    "open_item_store",
]
