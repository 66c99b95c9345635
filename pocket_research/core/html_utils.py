from __future__ import annotations

from html.parser import HTMLParser


class _HeadMetadataParser(HTMLParser):
    """Collect the first <title> text and <meta name="description"> content."""

    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self.title: str | None = None
        self.description: str | None = None
        self._in_title = False
        self._title_buf: list[str] = []

    def handle_starttag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        if tag == "title" and self.title is None:
            self._in_title = True
        elif tag == "meta" and self.description is None:
            attr_map = {key.lower(): (value or "") for key, value in attrs}
            if attr_map.get("name", "").lower() == "description":
                self.description = attr_map.get("content", "")

    def handle_endtag(self, tag: str) -> None:
        if tag == "title" and self._in_title:
            self._in_title = False
            self.title = "".join(self._title_buf).strip()

    def handle_data(self, data: str) -> None:
        if self._in_title:
            self._title_buf.append(data)


def extract_head_metadata(html_text: str) -> tuple[str, str]:
    """Return ``(title, description)`` from an HTML document; empty strings when absent."""
    parser = _HeadMetadataParser()
    parser.feed(html_text)
    parser.close()
    if parser._in_title:
        # unterminated <title>
        parser.title = "".join(parser._title_buf).strip()
    return parser.title or "", parser.description or ""
