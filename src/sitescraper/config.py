"""Run configuration and its validation."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from sitescraper.errors import ConfigurationError, UrlError
from sitescraper.fetcher import DEFAULT_USER_AGENT, FetchOptions
from sitescraper.formatters import FORMAT_EXTENSIONS
from sitescraper.models import CrawlBudget, CrawlMode, ExtractOptions
from sitescraper.urls import canonicalize

LOGGER = logging.getLogger(__name__)


@dataclass
class ScrapeConfig:
    """Everything a run needs, as parsed from the command line."""

    urls: List[str] = field(default_factory=list)
    url_file: Optional[str] = None
    output_format: str = "json"
    timeout: int = 30
    user_agent: str = DEFAULT_USER_AGENT
    proxy: Optional[str] = None
    selectors: List[str] = field(default_factory=list)
    delay_ms: int = 1000
    crawl: bool = False
    max_depth: int = 2
    max_pages: int = 10
    metadata: bool = False
    output: Optional[str] = None
    output_per_page: bool = False
    verbose: bool = False
    quiet: bool = False

    def validate(self) -> None:
        """Raise ConfigurationError for values no run could use."""
        if self.output_format.lower() not in FORMAT_EXTENSIONS:
            raise ConfigurationError(
                f"Unknown format '{self.output_format}'. Use: json, csv, or text"
            )
        if self.timeout <= 0:
            raise ConfigurationError("--timeout must be a positive number of seconds")
        if self.delay_ms < 0:
            raise ConfigurationError("--delay must be >= 0")
        if self.max_depth < 0:
            raise ConfigurationError("--max-depth must be >= 0")
        if self.max_pages < 1:
            raise ConfigurationError("--max-pages must be >= 1")
        if self.output_per_page and not self.output:
            raise ConfigurationError(
                "--output-per-page requires --output to be specified as a filename prefix"
            )
        if not self.urls and not self.url_file:
            raise ConfigurationError(
                "No URLs provided. Use positional arguments or --url-file to specify URLs."
            )

    def all_urls(self) -> List[str]:
        """Positional URLs followed by the URLs read from --url-file."""
        urls = list(self.urls)
        if self.url_file:
            urls.extend(load_url_file(self.url_file))
        return urls

    @property
    def mode(self) -> CrawlMode:
        return CrawlMode.CRAWL if self.crawl else CrawlMode.SINGLE

    def to_budget(self) -> CrawlBudget:
        return CrawlBudget(max_depth=self.max_depth, max_pages=self.max_pages)

    def to_fetch_options(self) -> FetchOptions:
        return FetchOptions(timeout=self.timeout, user_agent=self.user_agent, proxy=self.proxy)

    def to_extract_options(self) -> ExtractOptions:
        return ExtractOptions(want_metadata=self.metadata, custom_selectors=tuple(self.selectors))


def load_url_file(path: str) -> List[str]:
    """
    Read URLs from a file, one per line.

    Empty lines and lines starting with '#' are skipped, as are lines that are
    not absolute http(s) URLs.
    """
    try:
        lines = Path(path).read_text(encoding="utf-8").splitlines()
    except OSError as exc:
        raise ConfigurationError(f"Failed to open URL file '{path}': {exc}") from exc

    urls = []
    for line_num, line in enumerate(lines, start=1):
        trimmed = line.strip()
        if not trimmed or trimmed.startswith("#"):
            continue
        try:
            canonicalize(trimmed, trimmed)
        except UrlError as exc:
            LOGGER.warning("Skipping invalid URL on line %d in '%s': %s", line_num, path, exc)
            continue
        urls.append(trimmed)

    if not urls:
        raise ConfigurationError(f"No valid URLs found in file '{path}'")

    LOGGER.info("Loaded %d URL(s) from file '%s'", len(urls), path)
    return urls
