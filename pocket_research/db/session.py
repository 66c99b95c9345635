"""Database session management.

``DatabaseSessionManager`` owns the SQLite connection settings and runs
blocking Peewee work in a worker thread so the async fetch/sync flow can
await every storage call. Each call opens its own connection context and
commits independently.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import peewee
from playhouse.sqlite_ext import SqliteExtDatabase

from pocket_research.db.models import ALL_MODELS, database_proxy
from pocket_research.db.schema_migrator import SchemaMigrator

DB_OPERATION_TIMEOUT = 30.0
DB_MAX_RETRIES = 3


@dataclass
class DatabaseSessionManager:
    """Peewee-backed database session manager.

    Attributes:
        path: Path to the SQLite database file
        operation_timeout: Default timeout for database operations in seconds
        max_retries: Maximum retries when SQLite reports the database as locked
    """

    path: str
    operation_timeout: float = field(default=DB_OPERATION_TIMEOUT)
    max_retries: int = field(default=DB_MAX_RETRIES)
    _logger: logging.Logger = field(default_factory=lambda: logging.getLogger(__name__))
    _database: peewee.SqliteDatabase = field(init=False)

    def __post_init__(self) -> None:
        Path(self.path).parent.mkdir(parents=True, exist_ok=True)

        self._database = SqliteExtDatabase(
            self.path,
            pragmas={
                "journal_mode": "wal",
                "synchronous": "normal",
                "foreign_keys": 1,
            },
            check_same_thread=False,
        )
        database_proxy.initialize(self._database)

    @property
    def database(self) -> peewee.SqliteDatabase:
        return self._database

    def connection_context(self) -> Any:
        return self._database.connection_context()

    def migrate(self) -> None:
        """Create tables, patch older schemas, and seed reference rows."""
        migrator = SchemaMigrator(self._database, self._logger)
        with self._database.connection_context():
            self._database.create_tables(ALL_MODELS, safe=True)
            migrator.ensure_schema_compatibility()
            with self._database.atomic():
                migrator.seed_reference_rows()
        self._logger.info(
            "db_migrated",
            extra={"path": self._mask_path(self.path), "sqlite_version": self.sqlite_version()},
        )

    def sqlite_version(self) -> str:
        with self._database.connection_context():
            row = self._database.execute_sql("SELECT sqlite_version()").fetchone()
        return str(row[0])

    async def _safe_db_operation(
        self,
        operation: Any,
        *args: Any,
        timeout: float | None = None,
        operation_name: str = "database_operation",
        read_only: bool = False,
        **kwargs: Any,
    ) -> Any:
        """Execute a database operation with timeout and locked-database retry.

        Args:
            operation: Blocking callable doing Peewee work
            *args: Positional arguments for the operation
            timeout: Timeout in seconds (default: self.operation_timeout)
            operation_name: Name for logging purposes
            read_only: Read operations run without a transaction
            **kwargs: Keyword arguments for the operation

        Raises:
            TimeoutError: If the operation times out
            peewee.OperationalError: If the database stays locked after retries
            peewee.IntegrityError: On constraint violations
        """
        if timeout is None:
            timeout = self.operation_timeout

        def _op_wrapper() -> Any:
            with self._database.connection_context():
                if not read_only:
                    with self._database.atomic():
                        return operation(*args, **kwargs)
                return operation(*args, **kwargs)

        retries = 0
        while True:
            try:
                return await asyncio.wait_for(asyncio.to_thread(_op_wrapper), timeout=timeout)

            except TimeoutError:
                self._logger.exception(
                    "db_operation_timeout",
                    extra={"operation": operation_name, "timeout": timeout, "retries": retries},
                )
                raise

            except peewee.OperationalError as e:
                error_msg = str(e).lower()
                if ("locked" in error_msg or "busy" in error_msg) and retries < self.max_retries:
                    retries += 1
                    wait_time = 0.1 * (2**retries)
                    self._logger.warning(
                        "db_locked_retrying",
                        extra={
                            "operation": operation_name,
                            "retry": retries,
                            "max_retries": self.max_retries,
                            "wait_time": wait_time,
                        },
                    )
                    await asyncio.sleep(wait_time)
                    continue

                self._logger.exception(
                    "db_operational_error",
                    extra={"operation": operation_name, "retries": retries, "error": str(e)},
                )
                raise

            except peewee.IntegrityError as e:
                self._logger.error(
                    "db_integrity_error",
                    extra={"operation": operation_name, "error": str(e)},
                )
                raise

    @staticmethod
    def _mask_path(path: str) -> str:
        """Mask a path for logging (show only parent/filename)."""
        p = Path(path)
        parent = p.parent.name
        if parent:
            return f".../{parent}/{p.name}"
        return p.name
