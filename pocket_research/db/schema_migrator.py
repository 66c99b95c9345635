"""Schema migration helpers for DatabaseSessionManager."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pocket_research.db.models import SEED_PROVIDERS, Provider, Secret
from pocket_research.domain.models.secrets import DEFAULT_USER_ID

if TYPE_CHECKING:
    import logging

    import peewee


class SchemaMigrator:
    """Bring databases created by older releases up to the current schema."""

    def __init__(self, database: peewee.SqliteDatabase, logger: logging.Logger) -> None:
        self._database = database
        self._logger = logger

    def ensure_schema_compatibility(self) -> None:
        checks = [
            ("items", "lang", "TEXT"),
            ("items", "notes", "TEXT"),
            ("secrets", "pocket_consumer_key", "TEXT"),
            ("secrets", "pocket_access_token", "TEXT"),
        ]
        for table, column, coltype in checks:
            self._ensure_column(table, column, coltype)

    def seed_reference_rows(self) -> None:
        """Insert the fixed provider table and the empty secrets row (idempotent)."""
        for name in SEED_PROVIDERS:
            Provider.insert(name=name).on_conflict_ignore().execute()
        Secret.insert(user_id=DEFAULT_USER_ID).on_conflict_ignore().execute()

    def _ensure_column(self, table: str, column: str, coltype: str) -> None:
        if table not in self._database.get_tables():
            return
        existing = {col.name for col in self._database.get_columns(table)}
        if column not in existing:
            self._database.execute_sql(f"ALTER TABLE {table} ADD COLUMN {column} {coltype}")
            self._logger.info(
                "db_column_added", extra={"table": table, "column": column, "type": coltype}
            )
