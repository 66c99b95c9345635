"""SQLite implementation of the credential store.

One row keyed by ``DEFAULT_USER_ID`` holds the Pocket consumer key and
access token. ``init`` creates it empty and ``pocket auth`` fills it in.
"""

from __future__ import annotations

from pocket_research.db.models import Secret
from pocket_research.domain.models.secrets import DEFAULT_USER_ID, Secrets
from pocket_research.infrastructure.persistence.sqlite.base import SqliteBaseRepository


class SqliteSecretsRepositoryAdapter(SqliteBaseRepository):
    """Adapter for the singleton secrets row."""

    async def async_get_secrets(self) -> Secrets:
        """Load stored credentials; an absent row reads as empty secrets."""

        def _query() -> Secrets:
            row = Secret.get_or_none(Secret.user_id == DEFAULT_USER_ID)
            if row is None:
                return Secrets()
            return Secrets(
                pocket_consumer_key=row.pocket_consumer_key or None,
                pocket_access_token=row.pocket_access_token or None,
                user_id=row.user_id,
            )

        return await self._execute(_query, operation_name="get_secrets", read_only=True)

    async def async_set_secrets(self, secrets: Secrets) -> None:
        """Replace the stored credentials for the default user."""

        def _upsert() -> None:
            (
                Secret.insert(
                    user_id=DEFAULT_USER_ID,
                    pocket_consumer_key=secrets.pocket_consumer_key,
                    pocket_access_token=secrets.pocket_access_token,
                )
                .on_conflict(
                    conflict_target=[Secret.user_id],
                    preserve=[Secret.pocket_consumer_key, Secret.pocket_access_token],
                )
                .execute()
            )

        await self._execute(_upsert, operation_name="set_secrets")
