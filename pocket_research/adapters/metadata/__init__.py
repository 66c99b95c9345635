from pocket_research.adapters.metadata.scraper import WebpageMetadata, fetch_metadata

__all__ = ["WebpageMetadata", "fetch_metadata"]
