"""Export stored items as a Raindrop.io import file."""

from __future__ import annotations

import csv
import logging
from typing import TYPE_CHECKING

from pocket_research.core.time_utils import from_unix

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path

    from pocket_research.domain.models.item import CanonicalItem, Tag

logger = logging.getLogger(__name__)

RAINDROP_COLUMNS = ("url", "folder", "title", "note", "tags", "created")
DEFAULT_EXPORT_FILE = "raindrop_export.csv"


def raindrop_row(item: CanonicalItem, tags: Iterable[Tag]) -> dict[str, str]:
    return {
        "url": item.uri,
        "folder": "",
        "title": item.title,
        "note": item.notes or item.excerpt or "",
        "tags": ",".join(tag.tag_name for tag in tags),
        "created": from_unix(item.time_added).isoformat(),
    }


def export_raindrop_csv(
    items_with_tags: Iterable[tuple[CanonicalItem, list[Tag]]], path: str | Path
) -> int:
    """Write items to ``path`` in Raindrop's CSV layout; returns the row count."""
    count = 0
    with open(path, "w", newline="", encoding="utf-8") as handle:
        writer = csv.DictWriter(handle, fieldnames=RAINDROP_COLUMNS)
        writer.writeheader()
        for item, tags in items_with_tags:
            writer.writerow(raindrop_row(item, tags))
            count += 1
    logger.info("raindrop_export_written", extra={"path": str(path), "rows": count})
    return count
