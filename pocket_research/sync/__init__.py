"""Synchronization of provider items into local storage."""

from pocket_research.sync.models import SyncResult
from pocket_research.sync.service import SyncService
from pocket_research.sync.upsert import ItemUpserter

__all__ = ["ItemUpserter", "SyncResult", "SyncService"]
