"""Tests for sitescraper.formatters."""

from __future__ import annotations

import csv
import io
import json

import pytest

from sitescraper.errors import ConfigurationError
from sitescraper.formatters import (
    format_csv,
    format_json,
    format_text,
    format_text_custom_selectors,
    format_text_metadata,
    render,
    truncate_text,
)
from sitescraper.models import (
    CodeBlock,
    CustomSelectorResult,
    Image,
    Link,
    Metadata,
    PageRecord,
    Table,
)


@pytest.fixture
def record():
    return PageRecord(
        url="https://example.com/",
        status_code=200,
        title="Example, Inc.",
        headings=["Welcome", "About"],
        paragraphs=["First paragraph", "x" * 150],
        links=[Link(text="About", url="https://example.com/about")],
        images=[Image(alt="", src="https://example.com/logo.png")],
        depth=1,
    )


class TestJson:
    def test_single_record_fields(self, record):
        data = json.loads(format_json([record]))
        assert len(data) == 1
        item = data[0]
        assert item["url"] == "https://example.com/"
        assert item["status_code"] == 200
        assert item["headings"] == ["Welcome", "About"]
        assert item["links"] == [{"text": "About", "url": "https://example.com/about"}]
        assert item["images"] == [{"alt": "", "src": "https://example.com/logo.png"}]
        assert item["depth"] == 1

    def test_optional_fields_omitted_when_empty(self, record):
        item = json.loads(format_json([record]))[0]
        for key in ("metadata", "error", "custom_selectors", "tables", "code_blocks", "warnings"):
            assert key not in item

    def test_optional_fields_present_when_set(self, record):
        record.metadata = Metadata(description="Desc")
        record.custom_selectors = [CustomSelectorResult(".price", ["£10"])]
        record.tables = [Table(headers=["a"], rows=[["1"]])]
        item = json.loads(format_json([record]))[0]
        assert item["metadata"]["description"] == "Desc"
        assert item["metadata"]["keywords"] is None
        assert item["custom_selectors"] == [{"selector": ".price", "matches": ["£10"]}]
        assert item["tables"] == [{"headers": ["a"], "rows": [["1"]]}]

    def test_empty_custom_selector_matches_kept(self, record):
        record.custom_selectors = [CustomSelectorResult(".none", [])]
        item = json.loads(format_json([record]))[0]
        assert item["custom_selectors"] == [{"selector": ".none", "matches": []}]

    def test_non_ascii_kept(self, record):
        record.title = "Café £10"
        assert "Café £10" in format_json([record])

    def test_compact(self, record):
        assert "\n" not in format_json([record], pretty=False)

    def test_empty(self):
        assert json.loads(format_json([])) == []


class TestCsv:
    def test_header(self):
        assert format_csv([]).splitlines()[0] == (
            "url,status_code,title,headings_count,paragraphs_count,links_count,images_count,depth"
        )

    def test_data_row(self, record):
        rows = list(csv.reader(io.StringIO(format_csv([record]))))
        assert rows[1] == ["https://example.com/", "200", "Example, Inc.", "2", "2", "1", "1", "1"]

    def test_missing_title_is_empty_cell(self):
        rows = list(csv.reader(io.StringIO(format_csv([PageRecord(url="https://example.com/x")]))))
        assert rows[1] == ["https://example.com/x", "0", "", "0", "0", "0", "0", "0"]


class TestText:
    def test_basic_fields(self, record):
        text = format_text([record])
        assert "URL: https://example.com/" in text
        assert "Status: 200" in text
        assert "Depth: 1" in text
        assert "Title: Example, Inc." in text
        assert "Headings (2):" in text
        assert "  - Welcome" in text
        assert "  1. First paragraph" in text
        assert "  2. " + "x" * 100 + "..." in text
        assert "  - About (https://example.com/about)" in text
        assert "  - No alt text (https://example.com/logo.png)" in text

    def test_records_separated(self, record):
        text = format_text([record, record])
        assert text.count("=" * 80) == 1

    def test_long_lists_truncated(self, record):
        record.links = [Link(text=f"L{i}", url=f"https://example.com/{i}") for i in range(12)]
        text = format_text([record])
        assert "Links (12):" in text
        assert "  ... and 2 more" in text

    def test_error_shown(self):
        text = format_text([PageRecord(url="https://example.com/", error="Timeout: too slow")])
        assert "Error: Timeout: too slow" in text
        assert "Title:" not in text

    def test_tables_and_code(self, record):
        record.tables = [Table(headers=["Name", "Price"], rows=[["a", "1"]])]
        record.code_blocks = [CodeBlock(content="print('hi')", language="python")]
        text = format_text([record])
        assert "Headers: Name, Price" in text
        assert "Rows: 1" in text
        assert "1. print('hi') (python)" in text

    def test_metadata_section(self):
        lines = format_text_metadata(Metadata(
            description="Test description",
            keywords="test, rust",
            author="Author Name",
            og_title="OG Title",
            og_image="https://example.com/image.jpg",
        ))
        text = "\n".join(lines)
        assert "Description: Test description" in text
        assert "Keywords: test, rust" in text
        assert "Author: Author Name" in text
        assert "OG Title: OG Title" in text
        assert "OG Image: https://example.com/image.jpg" in text
        assert "Favicon" not in text

    def test_custom_selectors_section(self):
        text = "\n".join(format_text_custom_selectors([
            CustomSelectorResult(".item", ["Match 1", "Match 2", "Match 3", "Match 4"]),
        ]))
        assert "'.item' (4 matches)" in text
        assert "1. Match 1" in text
        assert "3. Match 3" in text
        assert "Match 4" not in text
        assert "... and 1 more" in text


class TestTruncate:
    def test_short(self):
        assert truncate_text("Short text", 100) == "Short text"

    def test_long(self):
        assert truncate_text("This is a very long piece of text", 20) == "This is a very long ..."

    def test_exact_length(self):
        assert truncate_text("12345678901234567890", 20) == "12345678901234567890"


class TestRender:
    @pytest.mark.parametrize("fmt", ["json", "JSON", "csv", "text", "txt"])
    def test_known_formats(self, record, fmt):
        assert render([record], fmt)

    def test_unknown_format(self, record):
        with pytest.raises(ConfigurationError):
            render([record], "xml")
