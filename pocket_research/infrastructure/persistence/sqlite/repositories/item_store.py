"""SQLite-backed ``ItemStore`` used by the sync engine and the CLI."""

from __future__ import annotations

from pathlib import Path

from pocket_research.db.session import DatabaseSessionManager
from pocket_research.domain.exceptions.domain_exceptions import ResearchError
from pocket_research.infrastructure.persistence.sqlite.repositories.item_repository import (
    SqliteItemRepositoryAdapter,
)
from pocket_research.infrastructure.persistence.sqlite.repositories.provider_repository import (
    SqliteProviderRepositoryAdapter,
)
from pocket_research.infrastructure.persistence.sqlite.repositories.secrets_repository import (
    SqliteSecretsRepositoryAdapter,
)


class SqliteItemStore(
    SqliteItemRepositoryAdapter,
    SqliteProviderRepositoryAdapter,
    SqliteSecretsRepositoryAdapter,
):
    """All repository adapters over one session manager."""


def open_item_store(
    db_path: str,
    *,
    operation_timeout: float = 30.0,
    max_retries: int = 3,
    create: bool = False,
) -> SqliteItemStore:
    """Open the research database at ``db_path``.

    With ``create`` the file is created and migrated; otherwise a missing
    file is reported instead of silently creating an empty database.

    Raises:
        ResearchError: If the database does not exist and ``create`` is False.
    """
    if not create and not Path(db_path).is_file():
        raise ResearchError(
            f"Database not found at {db_path}. Set the path with --db or DB_PATH, "
            "or create one with `pocket-research init <dir>`",
            details={"db_path": db_path},
        )
    session = DatabaseSessionManager(
        db_path, operation_timeout=operation_timeout, max_retries=max_retries
    )
    # idempotent; also upgrades files written by older versions
    session.migrate()
    return SqliteItemStore(session)
