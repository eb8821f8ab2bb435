"""
Rendering of page records as JSON, CSV or plain text.
"""
from __future__ import annotations

import csv
import io
import json
from dataclasses import asdict
from typing import Any, Callable, Dict, List, Sequence

from sitescraper.errors import ConfigurationError
from sitescraper.models import CustomSelectorResult, Metadata, PageRecord

CSV_COLUMNS = (
    "url",
    "status_code",
    "title",
    "headings_count",
    "paragraphs_count",
    "links_count",
    "images_count",
    "depth",
)

FORMAT_EXTENSIONS = {"json": "json", "csv": "csv", "text": "txt", "txt": "txt"}

# Optional fields dropped from JSON output when empty
_OMIT_WHEN_EMPTY = ("metadata", "error", "tables", "code_blocks", "custom_selectors", "warnings")

SEPARATOR = "=" * 80


def record_to_dict(record: PageRecord) -> Dict[str, Any]:
    data = asdict(record)
    for key in _OMIT_WHEN_EMPTY:
        if not data.get(key):
            data.pop(key, None)
    return data


def format_json(records: Sequence[PageRecord], pretty: bool = True) -> str:
    payload = [record_to_dict(r) for r in records]
    return json.dumps(payload, ensure_ascii=False, indent=2 if pretty else None)


def format_csv(records: Sequence[PageRecord]) -> str:
    """One summary row per record: counts only, not the content itself."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_COLUMNS)
    for r in records:
        writer.writerow((
            r.url,
            r.status_code,
            r.title or "",
            len(r.headings),
            len(r.paragraphs),
            len(r.links),
            len(r.images),
            r.depth,
        ))
    return buffer.getvalue()


def truncate_text(text: str, max_len: int) -> str:
    """Truncate text to max_len characters, adding an ellipsis."""
    if len(text) > max_len:
        return f"{text[:max_len]}..."
    return text


def _format_list(
    title: str,
    items: Sequence[Any],
    limit: int,
    render_item: Callable[[int, Any], str],
) -> List[str]:
    if not items:
        return []
    lines = ["", f"{title} ({len(items)}):"]
    for i, item in enumerate(items[:limit], start=1):
        lines.append(render_item(i, item))
    if len(items) > limit:
        lines.append(f"  ... and {len(items) - limit} more")
    return lines


def format_text_metadata(metadata: Metadata) -> List[str]:
    lines = ["", "Metadata:"]
    labels = (
        ("Description", metadata.description),
        ("Keywords", metadata.keywords),
        ("Author", metadata.author),
        ("OG Title", metadata.og_title),
        ("OG Description", metadata.og_description),
        ("OG Image", metadata.og_image),
        ("OG URL", metadata.og_url),
        ("Canonical URL", metadata.canonical_url),
        ("Favicon", metadata.favicon),
    )
    lines.extend(f"  {label}: {value}" for label, value in labels if value is not None)
    return lines


def format_text_custom_selectors(results: Sequence[CustomSelectorResult]) -> List[str]:
    lines = ["", "Custom Selectors:"]
    for result in results:
        lines.append(f"  '{result.selector}' ({len(result.matches)} matches):")
        for i, match in enumerate(result.matches[:3], start=1):
            lines.append(f"    {i}. {match}")
        if len(result.matches) > 3:
            lines.append(f"    ... and {len(result.matches) - 3} more")
    return lines


def format_record_text(r: PageRecord) -> str:
    lines = [f"URL: {r.url}", f"Status: {r.status_code}", f"Depth: {r.depth}"]
    if r.title is not None:
        lines.append(f"Title: {r.title}")
    if r.error:
        lines.append(f"Error: {r.error}")

    lines += _format_list("Headings", r.headings, len(r.headings), lambda i, h: f"  - {h}")
    lines += _format_list(
        "Paragraphs", r.paragraphs, 5, lambda i, p: f"  {i}. {truncate_text(p, 100)}"
    )
    lines += _format_list("Links", r.links, 10, lambda i, link: f"  - {link.text} ({link.url})")
    lines += _format_list(
        "Images", r.images, 5, lambda i, img: f"  - {img.alt or 'No alt text'} ({img.src})"
    )
    lines += _format_list(
        "Tables",
        r.tables,
        3,
        lambda i, t: f"  Table {i}:"
        + (f"\n    Headers: {', '.join(t.headers)}" if t.headers else "")
        + f"\n    Rows: {len(t.rows)}",
    )
    lines += _format_list(
        "Code Blocks",
        r.code_blocks,
        3,
        lambda i, c: f"  {i}. {truncate_text(c.content, 60)}"
        + (f" ({c.language})" if c.language else ""),
    )
    if r.metadata is not None:
        lines += format_text_metadata(r.metadata)
    if r.custom_selectors:
        lines += format_text_custom_selectors(r.custom_selectors)
    if r.warnings:
        lines += _format_list("Warnings", r.warnings, len(r.warnings), lambda i, w: f"  ! {w}")
    return "\n".join(lines) + "\n"


def format_text(records: Sequence[PageRecord]) -> str:
    return f"\n\n{SEPARATOR}\n\n".join(format_record_text(r) for r in records)


def render(records: Sequence[PageRecord], fmt: str, pretty: bool = True) -> str:
    """Render records in ``fmt`` (json, csv, text/txt)."""
    fmt = fmt.lower()
    if fmt == "json":
        return format_json(records, pretty=pretty)
    if fmt == "csv":
        return format_csv(records)
    if fmt in ("text", "txt"):
        return format_text(records)
    raise ConfigurationError(f"Unknown format '{fmt}'. Use: json, csv, or text")
