"""
Data structures shared by the extractor, the crawl engine and the formatters.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

# Status code recorded when no HTTP response was received at all
TRANSPORT_FAILURE_STATUS = 0


class CrawlMode(str, Enum):
    SINGLE = "single"
    CRAWL = "crawl"


@dataclass(slots=True, frozen=True)
class CrawlBudget:
    """Limits for one crawl run. max_pages counts emitted records."""
    max_depth: int = 2
    max_pages: int = 10

    def __post_init__(self) -> None:
        if self.max_depth < 0:
            raise ValueError("max_depth must be >= 0")
        if self.max_pages < 1:
            raise ValueError("max_pages must be >= 1")


@dataclass(slots=True, frozen=True)
class ExtractOptions:
    want_metadata: bool = False
    custom_selectors: Tuple[str, ...] = ()


@dataclass(slots=True)
class Link:
    text: str
    url: str


@dataclass(slots=True)
class Image:
    alt: str
    src: str


@dataclass(slots=True)
class Table:
    headers: List[str] = field(default_factory=list)
    rows: List[List[str]] = field(default_factory=list)


@dataclass(slots=True)
class CodeBlock:
    content: str
    language: Optional[str] = None


@dataclass(slots=True)
class Metadata:
    """Meta tags and link relations found in the document head."""
    description: Optional[str] = None
    keywords: Optional[str] = None
    author: Optional[str] = None
    og_title: Optional[str] = None
    og_description: Optional[str] = None
    og_image: Optional[str] = None
    og_url: Optional[str] = None
    canonical_url: Optional[str] = None
    favicon: Optional[str] = None


@dataclass(slots=True)
class CustomSelectorResult:
    selector: str
    matches: List[str] = field(default_factory=list)


@dataclass(slots=True)
class PageRecord:
    """Structured extraction result for a single fetched page."""
    url: str
    status_code: int = TRANSPORT_FAILURE_STATUS
    title: Optional[str] = None
    headings: List[str] = field(default_factory=list)
    paragraphs: List[str] = field(default_factory=list)
    links: List[Link] = field(default_factory=list)
    images: List[Image] = field(default_factory=list)
    tables: List[Table] = field(default_factory=list)
    code_blocks: List[CodeBlock] = field(default_factory=list)
    metadata: Optional[Metadata] = None
    custom_selectors: List[CustomSelectorResult] = field(default_factory=list)
    depth: int = 0
    error: Optional[str] = None
    warnings: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        """True for 2xx responses."""
        return 200 <= self.status_code < 300
