"""
Crawl engine: frontier, visited set and the sequential fetch/extract loop.
"""
from __future__ import annotations

import logging
import sys
from collections import defaultdict, deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Deque, Dict, List, Optional, Sequence, Set, Tuple

from sitescraper.errors import ConfigurationError, HttpStatusError, TransportError, UrlError
from sitescraper.extractor import extract
from sitescraper.fetcher import (
    DEFAULT_USER_AGENT,
    FetchOptions,
    Fetcher,
    RequestsFetcher,
    describe_http_status,
    detect_anti_bot,
)
from sitescraper.models import (
    TRANSPORT_FAILURE_STATUS,
    CrawlBudget,
    CrawlMode,
    ExtractOptions,
    PageRecord,
)
from sitescraper.ratelimit import RateLimiter
from sitescraper.urls import canonicalize, is_page_url, same_domain

LOGGER = logging.getLogger(__name__)


class RunState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    ABORTED = "aborted"


@dataclass(slots=True)
class CrawlStats:
    """Statistics collected during a run for summary output."""
    pages_crawled: int = 0
    pages_failed: int = 0
    pages_without_title: int = 0
    pages_without_headings: int = 0
    links_discovered: int = 0
    links_enqueued: int = 0
    interrupted: bool = False
    error_counts: Dict[str, int] = field(default_factory=lambda: defaultdict(int))

    def record_error(self, status_code: Optional[int], kind: str = "connection_error") -> None:
        """Record an error by status code category."""
        self.pages_failed += 1
        if status_code is None or status_code == TRANSPORT_FAILURE_STATUS:
            self.error_counts[kind] += 1
        else:
            self.error_counts[str(status_code)] += 1

    def record_page(self, record: PageRecord) -> None:
        """Record page content statistics."""
        self.pages_crawled += 1
        if not record.title:
            self.pages_without_title += 1
        if not record.headings:
            self.pages_without_headings += 1


class CrawlEngine:
    """
    Sequential scraper/crawler.

    One engine owns one rate limiter. Each call to run() gets its own
    frontier and visited set; records are returned as a fresh list.
    """

    def __init__(
        self,
        fetcher: Optional[Fetcher] = None,
        rate_limiter: Optional[RateLimiter] = None,
        verbose: bool = False,
    ) -> None:
        self.fetcher = fetcher or RequestsFetcher()
        self.rate_limiter = rate_limiter or RateLimiter(0)
        self.verbose = verbose
        self.state = RunState.IDLE
        self.stats = CrawlStats()
        self._cancelled = False

    def cancel(self) -> None:
        """Stop before the next page; records collected so far are kept."""
        self._cancelled = True

    def run(
        self,
        seeds: Sequence[str],
        budget: Optional[CrawlBudget] = None,
        mode: CrawlMode = CrawlMode.SINGLE,
        fetch_opts: Optional[FetchOptions] = None,
        extract_opts: Optional[ExtractOptions] = None,
    ) -> List[PageRecord]:
        """
        Fetch and extract the seed pages, following same-host links in crawl mode.

        Args:
            seeds: Start URLs. Invalid ones are dropped with a warning.
            budget: Depth and page limits (crawl mode only).
            mode: CrawlMode.SINGLE fetches each seed once; CrawlMode.CRAWL runs BFS.
            fetch_opts: Timeout, user agent and proxy applied to every fetch.
            extract_opts: Metadata flag and custom selectors.

        Returns:
            Records in fetch order.

        Raises:
            ConfigurationError: if no seed URL is valid. Nothing is fetched.
        """
        mode = CrawlMode(mode)
        budget = budget or CrawlBudget()
        fetch_opts = fetch_opts or FetchOptions()
        extract_opts = extract_opts or ExtractOptions()

        self.stats = CrawlStats()
        self._cancelled = False

        valid_seeds = self._prepare_seeds(seeds, dedupe=mode is CrawlMode.CRAWL)
        if not valid_seeds:
            self.state = RunState.ABORTED
            raise ConfigurationError("No valid seed URLs to scrape")

        self.state = RunState.RUNNING
        if mode is CrawlMode.CRAWL:
            LOGGER.info("Starting crawl from: %s", ", ".join(valid_seeds))
            LOGGER.info("Max depth: %d, Max pages: %d", budget.max_depth, budget.max_pages)
            records = self._crawl(valid_seeds, budget, fetch_opts, extract_opts)
        else:
            LOGGER.info("Scraping %d URL(s)", len(valid_seeds))
            records = self._scrape_each(valid_seeds, fetch_opts, extract_opts)

        if self.verbose:
            sys.stderr.write("\n")
        self.state = RunState.COMPLETED
        return list(records)

    def _prepare_seeds(self, seeds: Sequence[str], dedupe: bool = False) -> List[str]:
        valid: List[str] = []
        for raw in seeds:
            try:
                url = canonicalize(raw, raw)
            except UrlError as exc:
                LOGGER.warning("Skipping seed URL: %s", exc)
                continue
            if not dedupe or url not in valid:
                valid.append(url)
        return valid

    def _scrape_each(
        self,
        seeds: List[str],
        fetch_opts: FetchOptions,
        extract_opts: ExtractOptions,
    ) -> List[PageRecord]:
        records: List[PageRecord] = []
        for url in seeds:
            if self._should_stop():
                break
            try:
                records.append(self._process_page(url, 0, fetch_opts, extract_opts))
            except KeyboardInterrupt:
                self._interrupt()
                break
        return records

    def _crawl(
        self,
        seeds: List[str],
        budget: CrawlBudget,
        fetch_opts: FetchOptions,
        extract_opts: ExtractOptions,
    ) -> List[PageRecord]:
        records: List[PageRecord] = []
        visited: Set[str] = set(seeds)
        queue: Deque[Tuple[str, int]] = deque((url, 0) for url in seeds)

        while queue and len(records) < budget.max_pages:
            if self._should_stop():
                break

            url, depth = queue.popleft()
            if self.verbose:
                print_progress(len(records), len(visited), len(queue), budget.max_pages)

            try:
                record = self._process_page(url, depth, fetch_opts, extract_opts)
            except KeyboardInterrupt:
                self._interrupt()
                break
            records.append(record)

            # Discover and queue new links
            new_links = 0
            for link in record.links:
                self.stats.links_discovered += 1
                if self._admit(link.url, depth, seeds, visited, budget, len(records)):
                    visited.add(link.url)
                    queue.append((link.url, depth + 1))
                    new_links += 1
            self.stats.links_enqueued += new_links

            if self.verbose:
                print_scan_line(url, record.status_code, new_links)

        return records

    @staticmethod
    def _admit(
        url: str,
        depth: int,
        seeds: List[str],
        visited: Set[str],
        budget: CrawlBudget,
        emitted: int,
    ) -> bool:
        """Frontier admission rule for a link found on a page at ``depth``."""
        if url in visited:
            return False
        if depth + 1 > budget.max_depth:
            return False
        if emitted >= budget.max_pages:
            return False
        if not any(same_domain(seed, url) for seed in seeds):
            LOGGER.debug("Different domain skipped: %s", url)
            return False
        if not is_page_url(url):
            LOGGER.debug("Static asset skipped: %s", url)
            return False
        return True

    def _process_page(
        self,
        url: str,
        depth: int,
        fetch_opts: FetchOptions,
        extract_opts: ExtractOptions,
    ) -> PageRecord:
        self.rate_limiter.wait_if_needed()
        LOGGER.info("Fetching: %s (depth: %d)", url, depth)

        try:
            response = self.fetcher.fetch(url, fetch_opts)
        except TransportError as exc:
            LOGGER.warning("Failed to fetch %s: %s", url, exc)
            self.stats.pages_crawled += 1
            self.stats.record_error(None, exc.kind)
            return PageRecord(url=url, status_code=TRANSPORT_FAILURE_STATUS, depth=depth, error=str(exc))

        if not response.is_html:
            record = PageRecord(url=url, status_code=response.status_code, depth=depth)
            record.warnings.append(f"Skipped non-HTML content ({response.content_type})")
        else:
            # Relative links resolve against the post-redirect URL
            record = extract(response.body, response.url or url, extract_opts)
            record.url = url
            record.status_code = response.status_code
            record.depth = depth
            anti_bot = detect_anti_bot(response.body, record.title)
            if anti_bot:
                LOGGER.warning("Anti-bot detection for %s: %s", url, anti_bot)
                record.warnings.append(anti_bot)

        message = describe_http_status(response.status_code, url)
        if message:
            failure = HttpStatusError(response.status_code, message)
            LOGGER.warning("%s", failure)
            record.error = failure.message
            self.stats.record_error(failure.status_code)
        self.stats.record_page(record)
        return record

    def _should_stop(self) -> bool:
        if self._cancelled:
            LOGGER.warning("Run cancelled; returning partial results")
            self.stats.interrupted = True
        return self._cancelled

    def _interrupt(self) -> None:
        self._cancelled = True
        self.stats.interrupted = True
        LOGGER.warning("Interrupted; returning partial results")


def print_progress(scanned: int, discovered: int, queue_size: int, max_pages: int) -> None:
    """Print real-time progress to stderr."""
    # Clear line and print progress
    progress = f"\r\033[K[{scanned}/{max_pages}] Visited: {scanned} | Discovered: {discovered} | Queue: {queue_size}"
    sys.stderr.write(progress)
    sys.stderr.flush()


def print_scan_line(url: str, status: Optional[int], new_links: int) -> None:
    """Print single scan result line."""
    status_str = str(status) if status else "ERR"
    sys.stderr.write(f"\n  → {status_str} {url} (+{new_links} links)")
    sys.stderr.flush()


def crawl(
    seeds: Sequence[str],
    *,
    mode: CrawlMode = CrawlMode.SINGLE,
    max_depth: int = 2,
    max_pages: int = 10,
    timeout: float = 30.0,
    user_agent: str = DEFAULT_USER_AGENT,
    proxy: Optional[str] = None,
    delay_ms: int = 0,
    want_metadata: bool = False,
    custom_selectors: Sequence[str] = (),
    fetcher: Optional[Fetcher] = None,
    verbose: bool = False,
) -> Tuple[List[PageRecord], CrawlStats]:
    """
    Scrape ``seeds`` (and, in crawl mode, the same-host pages they link to).

    Returns:
        Tuple of (records list, crawl statistics).
    """
    engine = CrawlEngine(fetcher=fetcher, rate_limiter=RateLimiter(delay_ms), verbose=verbose)
    records = engine.run(
        seeds,
        CrawlBudget(max_depth=max_depth, max_pages=max_pages),
        mode,
        FetchOptions(timeout=timeout, user_agent=user_agent, proxy=proxy),
        ExtractOptions(want_metadata=want_metadata, custom_selectors=tuple(custom_selectors)),
    )
    return records, engine.stats
