"""Tests for page metadata lookup and the Raindrop CSV export."""

from __future__ import annotations

import csv
import tempfile
import unittest
from pathlib import Path

import httpx
import pytest

from pocket_research.adapters.metadata.scraper import fetch_metadata, metadata_from_response
from pocket_research.core.html_utils import extract_head_metadata
from pocket_research.domain.exceptions.domain_exceptions import TransportError
from pocket_research.domain.models.item import CanonicalItem, Tag
from pocket_research.export.csv_export import RAINDROP_COLUMNS, export_raindrop_csv, raindrop_row
from tests.conftest import SAMPLE_TIME_ADDED

PAGE = """<!doctype html>
<html><head>
  <title> Attention Is All You Need </title>
  <meta name="Description" content="Transformer paper">
</head><body><title>not this one</title></body></html>
"""


# ==================== HTML head parsing ====================


class TestHeadMetadata(unittest.TestCase):
    def test_title_and_description(self):
        assert extract_head_metadata(PAGE) == ("Attention Is All You Need", "Transformer paper")

    def test_missing_tags(self):
        assert extract_head_metadata("<html><body>hi</body></html>") == ("", "")

    def test_unterminated_title(self):
        assert extract_head_metadata("<title>Half") == ("Half", "")

    def test_non_html_uses_file_name(self):
        metadata = metadata_from_response(
            "https://arxiv.org/pdf/1706.03762%20v7.pdf", "application/pdf", ""
        )
        assert metadata.title == "1706.03762 v7.pdf"
        assert metadata.description == "File type: application/pdf"


@pytest.mark.asyncio
async def test_fetch_metadata_html():
    transport = httpx.MockTransport(
        lambda request: httpx.Response(
            200, text=PAGE, headers={"content-type": "text/html; charset=utf-8"}
        )
    )

    metadata = await fetch_metadata("https://example.com/paper", transport=transport)

    assert metadata.title == "Attention Is All You Need"
    assert metadata.description == "Transformer paper"


@pytest.mark.asyncio
async def test_fetch_metadata_http_error():
    transport = httpx.MockTransport(lambda request: httpx.Response(404))

    with pytest.raises(TransportError) as exc_info:
        await fetch_metadata("https://example.com/gone", transport=transport)

    assert exc_info.value.status_code == 404


@pytest.mark.asyncio
async def test_fetch_metadata_network_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("no route to host")

    with pytest.raises(TransportError):
        await fetch_metadata("https://example.com", transport=httpx.MockTransport(handler))


# ==================== Raindrop export ====================


class TestRaindropExport(unittest.TestCase):
    def _item(self, **kwargs) -> CanonicalItem:
        return CanonicalItem(
            id=1,
            uri=kwargs.pop("uri", "https://example.com/a"),
            title="A",
            time_added=SAMPLE_TIME_ADDED,
            excerpt=kwargs.pop("excerpt", "summary"),
            **kwargs,
        )

    def test_row_prefers_notes_over_excerpt(self):
        row = raindrop_row(self._item(notes="my notes"), [Tag("x"), Tag("y")])
        assert row == {
            "url": "https://example.com/a",
            "folder": "",
            "title": "A",
            "note": "my notes",
            "tags": "x,y",
            "created": "2021-08-21T17:00:00+00:00",
        }

    def test_row_falls_back_to_excerpt(self):
        assert raindrop_row(self._item(), [])["note"] == "summary"

    def test_export_writes_header_and_rows(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "out.csv"
            count = export_raindrop_csv(
                [(self._item(), [Tag("ml")]), (self._item(uri="https://b.example"), [])], path
            )

            with open(path, newline="", encoding="utf-8") as handle:
                rows = list(csv.DictReader(handle))

        assert count == 2
        assert tuple(rows[0].keys()) == RAINDROP_COLUMNS
        assert rows[0]["tags"] == "ml"
        assert rows[1]["url"] == "https://b.example"

    def test_export_with_no_items_writes_header_only(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "empty.csv"
            assert export_raindrop_csv([], path) == 0
            assert path.read_text(encoding="utf-8").strip() == ",".join(RAINDROP_COLUMNS)
