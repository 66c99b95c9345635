"""Result models for sync runs."""

from __future__ import annotations

from pydantic import BaseModel, Field, computed_field


class SyncResult(BaseModel):
    """Result of one provider sync or single-item save."""

    provider: str
    items_fetched: int = 0
    items_inserted: int = 0
    items_skipped_existing: int = 0
    items_failed: int = 0
    tags_linked: int = 0
    tag_failures: int = 0
    envelope_errors: list[str] = Field(default_factory=list)
    decode_failures: list[str] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)
    retryable_errors: list[str] = Field(default_factory=list)
    permanent_errors: list[str] = Field(default_factory=list)
    fetch_aborted: bool = False
    duration_seconds: float = 0.0

    @computed_field  # type: ignore[prop-decorator]
    @property
    def items_dropped(self) -> int:
        return len(self.decode_failures) + self.items_failed

    def summary_line(self) -> str:
        return (
            f"{self.provider}: fetched={self.items_fetched} inserted={self.items_inserted} "
            f"existing={self.items_skipped_existing} dropped={self.items_dropped} "
            f"tags_linked={self.tags_linked} tag_failures={self.tag_failures} "
            f"envelope_errors={len(self.envelope_errors)}"
        )
