"""Pocket integration adapter."""

from pocket_research.adapters.pocket.client import PocketClient
from pocket_research.adapters.pocket.fetcher import PocketFetcher
from pocket_research.adapters.pocket.provider import PocketProvider

__all__ = ["PocketClient", "PocketFetcher", "PocketProvider"]
