"""Adapters for item providers: the Pocket API, local saves, page metadata."""

from pocket_research.adapters.fetch_report import FetchReport, ItemDecodeFailure
from pocket_research.adapters.protocols import ProviderAdapter

__all__ = ["FetchReport", "ItemDecodeFailure", "ProviderAdapter"]
