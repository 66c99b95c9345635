from pocket_research.handler.url_handler import SaveRequest, handle_url, parse_research_url

__all__ = ["SaveRequest", "handle_url", "parse_research_url"]
