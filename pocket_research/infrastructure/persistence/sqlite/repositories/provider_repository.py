"""SQLite implementation of the provider lookup."""

from __future__ import annotations

from pocket_research.db.models import Provider
from pocket_research.domain.exceptions.domain_exceptions import UnknownProviderError
from pocket_research.infrastructure.persistence.sqlite.base import SqliteBaseRepository


class SqliteProviderRepositoryAdapter(SqliteBaseRepository):
    """Resolve provider names against the seeded providers table."""

    async def async_get_provider_id(self, name: str) -> int:
        """Return the provider id for ``name``.

        Raises:
            UnknownProviderError: If the name was never registered.
        """

        def _query() -> int | None:
            row = Provider.get_or_none(Provider.name == name)
            return row.id if row else None

        provider_id = await self._execute(
            _query, operation_name="get_provider_id", read_only=True
        )
        if provider_id is None:
            msg = f"Provider '{name}' is not registered; run `pocket-research init` first"
            raise UnknownProviderError(msg, details={"provider": name})
        return provider_id

    async def async_list_providers(self) -> list[str]:
        def _query() -> list[str]:
            return [p.name for p in Provider.select().order_by(Provider.id)]

        return await self._execute(_query, operation_name="list_providers", read_only=True)
