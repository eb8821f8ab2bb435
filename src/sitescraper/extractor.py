"""
Extraction of structured content from a fetched HTML page.
"""
from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Sequence

import soupsieve
from bs4 import BeautifulSoup, Tag

from sitescraper.errors import InvalidSelectorError, UrlError
from sitescraper.models import (
    CodeBlock,
    CustomSelectorResult,
    ExtractOptions,
    Image,
    Link,
    Metadata,
    PageRecord,
    Table,
)
from sitescraper.urls import canonicalize

LOGGER = logging.getLogger(__name__)

HEADING_TAGS = ("h1", "h2", "h3", "h4", "h5", "h6")
LANGUAGE_CLASS_PREFIXES = ("language-", "lang-")

# meta name/property -> Metadata field
META_FIELDS = {
    "description": "description",
    "keywords": "keywords",
    "author": "author",
    "og:title": "og_title",
    "og:description": "og_description",
    "og:image": "og_image",
    "og:url": "og_url",
}


def parse_html(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "lxml")


def _text(element: Tag) -> str:
    return element.get_text().strip()


def _texts(elements: Iterable[Tag]) -> List[str]:
    return [text for el in elements if (text := _text(el))]


def extract_title(soup: BeautifulSoup) -> Optional[str]:
    """Text of the first <title>, trimmed. None only when there is no <title>."""
    title = soup.find("title")
    if title is None:
        return None
    return _text(title)


def extract_headings(soup: BeautifulSoup) -> List[str]:
    """All h1-h6 texts in document order."""
    return _texts(soup.find_all(list(HEADING_TAGS)))


def extract_paragraphs(soup: BeautifulSoup) -> List[str]:
    return _texts(soup.find_all("p"))


def extract_links(soup: BeautifulSoup, page_url: str) -> List[Link]:
    """All <a href> links; hrefs that cannot be canonicalized are skipped."""
    links = []
    for a in soup.find_all("a", href=True):
        try:
            url = canonicalize(page_url, a["href"])
        except UrlError:
            LOGGER.debug("Skipping link %r on %s", a["href"], page_url)
            continue
        links.append(Link(text=_text(a), url=url))
    return links


def extract_images(soup: BeautifulSoup, page_url: str) -> List[Image]:
    images = []
    for img in soup.find_all("img", src=True):
        try:
            src = canonicalize(page_url, img["src"])
        except UrlError:
            LOGGER.debug("Skipping image %r on %s", img["src"], page_url)
            continue
        images.append(Image(alt=img.get("alt") or "", src=src))
    return images


def extract_tables(soup: BeautifulSoup) -> List[Table]:
    """Header cells and data rows of every <table>; empty tables are dropped."""
    tables = []
    for table in soup.find_all("table"):
        headers = _texts(table.find_all("th"))
        rows = []
        for tr in table.find_all("tr"):
            cells = [_text(td) for td in tr.find_all("td")]
            if cells:
                rows.append(cells)
        if headers or rows:
            tables.append(Table(headers=headers, rows=rows))
    return tables


def _code_language(code: Tag) -> Optional[str]:
    for cls in code.get("class") or []:
        for prefix in LANGUAGE_CLASS_PREFIXES:
            if cls.startswith(prefix):
                return cls[len(prefix):]
    return None


def extract_code_blocks(soup: BeautifulSoup) -> List[CodeBlock]:
    """<pre><code> blocks, bare <pre> blocks, then inline <code> outside <pre>."""
    blocks = []
    for pre in soup.find_all("pre"):
        codes = pre.find_all("code")
        if codes:
            for code in codes:
                content = code.get_text()
                if content.strip():
                    blocks.append(CodeBlock(content=content, language=_code_language(code)))
        else:
            content = pre.get_text()
            if content.strip():
                blocks.append(CodeBlock(content=content))

    for code in soup.find_all("code"):
        if code.find_parent("pre") is not None:
            continue
        content = code.get_text()
        if content.strip():
            blocks.append(CodeBlock(content=content, language=_code_language(code)))
    return blocks


def extract_metadata(soup: BeautifulSoup) -> Metadata:
    """Meta description/keywords/author, Open Graph tags, canonical and favicon links.

    Missing elements leave the field None; the first occurrence wins.
    """
    metadata = Metadata()
    for meta in soup.find_all("meta", content=True):
        name = (meta.get("name") or meta.get("property") or "").lower()
        attr = META_FIELDS.get(name)
        if attr and getattr(metadata, attr) is None:
            setattr(metadata, attr, meta["content"])

    for link in soup.find_all("link", href=True):
        rel = [value.lower() for value in (link.get("rel") or [])]
        if "canonical" in rel and metadata.canonical_url is None:
            metadata.canonical_url = link["href"]
        if "icon" in rel and metadata.favicon is None:
            metadata.favicon = link["href"]
    return metadata


def compile_selector(selector: str) -> soupsieve.SoupSieve:
    # soupsieve raises NotImplementedError for pseudo-elements and at-rules
    try:
        return soupsieve.compile(selector)
    except (soupsieve.SelectorSyntaxError, NotImplementedError) as exc:
        detail = str(exc).splitlines()[0] if str(exc) else type(exc).__name__
        raise InvalidSelectorError(selector, detail) from exc


def select_custom(soup: BeautifulSoup, selector: str) -> CustomSelectorResult:
    """Apply one CSS selector. Raises InvalidSelectorError for bad syntax."""
    compiled = compile_selector(selector)
    matches = _texts(compiled.select(soup))
    LOGGER.debug("Custom selector '%s' found %d matches", selector, len(matches))
    return CustomSelectorResult(selector=selector, matches=matches)


def extract(html: str, page_url: str, options: Optional[ExtractOptions] = None) -> PageRecord:
    """Parse ``html`` fetched from ``page_url`` into a PageRecord.

    Only content fields are filled in; status code and depth are left to the
    caller. An invalid custom selector is kept with an empty match list and a
    warning on the record.
    """
    options = options or ExtractOptions()
    soup = parse_html(html)

    record = PageRecord(
        url=page_url,
        title=extract_title(soup),
        headings=extract_headings(soup),
        paragraphs=extract_paragraphs(soup),
        links=extract_links(soup, page_url),
        images=extract_images(soup, page_url),
        tables=extract_tables(soup),
        code_blocks=extract_code_blocks(soup),
    )

    if options.want_metadata:
        record.metadata = extract_metadata(soup)

    record.custom_selectors, record.warnings = _apply_selectors(soup, options.custom_selectors)
    return record


def _apply_selectors(soup: BeautifulSoup, selectors: Sequence[str]):
    results: List[CustomSelectorResult] = []
    warnings: List[str] = []
    for selector in selectors:
        try:
            results.append(select_custom(soup, selector))
        except InvalidSelectorError as exc:
            LOGGER.warning("%s", exc)
            warnings.append(str(exc))
            results.append(CustomSelectorResult(selector=selector, matches=[]))
    return results, warnings
