from __future__ import annotations

from dataclasses import dataclass, replace

from pocket_research.domain.exceptions.domain_exceptions import CredentialError

DEFAULT_USER_ID = 0

CONSUMER_KEY_HINT = (
    "Pocket consumer key not found. Create one at https://getpocket.com/developer/apps/new "
    "and run `pocket-research pocket auth --key <KEY>`."
)
ACCESS_TOKEN_HINT = (
    "Pocket access token not found. Run `pocket-research pocket auth --key <KEY>` first."
)


@dataclass(frozen=True)
class Secrets:
    """Per-installation provider credentials, bound to the default user."""

    pocket_consumer_key: str | None = None
    pocket_access_token: str | None = None
    user_id: int = DEFAULT_USER_ID

    def with_fallbacks(
        self, consumer_key: str | None = None, access_token: str | None = None
    ) -> Secrets:
        """Fill empty stored values from flags or environment."""
        return replace(
            self,
            pocket_consumer_key=self.pocket_consumer_key or consumer_key or None,
            pocket_access_token=self.pocket_access_token or access_token or None,
        )

    def require_pocket(self) -> tuple[str, str]:
        if not self.pocket_consumer_key:
            raise CredentialError(CONSUMER_KEY_HINT)
        if not self.pocket_access_token:
            raise CredentialError(ACCESS_TOKEN_HINT)
        return self.pocket_consumer_key, self.pocket_access_token
