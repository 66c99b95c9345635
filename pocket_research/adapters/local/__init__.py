from pocket_research.adapters.local.provider import LocalItem, LocalProvider

__all__ = ["LocalItem", "LocalProvider"]
