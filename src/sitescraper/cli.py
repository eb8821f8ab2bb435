"""
Command-line interface for the scraper.
"""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional, Sequence

from sitescraper import __version__
from sitescraper.config import ScrapeConfig
from sitescraper.core import CrawlEngine, CrawlStats
from sitescraper.errors import ConfigurationError
from sitescraper.fetcher import DEFAULT_USER_AGENT, RequestsFetcher
from sitescraper.formatters import FORMAT_EXTENSIONS, render
from sitescraper.models import PageRecord
from sitescraper.ratelimit import RateLimiter

LOGGER = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ALL_FAILED = 1
EXIT_CONFIG_ERROR = 2


def print_summary(stats: CrawlStats) -> None:
    """Print run summary to stderr."""
    sys.stderr.write("=" * 50 + "\n")
    sys.stderr.write("SCRAPE SUMMARY\n")
    sys.stderr.write("=" * 50 + "\n\n")

    sys.stderr.write(f"Total pages fetched:    {stats.pages_crawled}\n")
    sys.stderr.write(f"Pages failed:           {stats.pages_failed}\n")
    sys.stderr.write(f"Pages without title:    {stats.pages_without_title}\n")
    sys.stderr.write(f"Pages without headings: {stats.pages_without_headings}\n")
    sys.stderr.write(f"Links discovered:       {stats.links_discovered}\n")
    sys.stderr.write(f"Links queued:           {stats.links_enqueued}\n\n")

    if stats.error_counts:
        sys.stderr.write("Errors by type:\n")
        for error_type, count in sorted(stats.error_counts.items()):
            if error_type == "connection_error":
                label = "Connection errors"
            elif error_type == "timeout":
                label = "Timeouts"
            else:
                label = f"HTTP {error_type}"
            sys.stderr.write(f"  {label}: {count}\n")
    else:
        sys.stderr.write("No errors encountered.\n")

    if stats.interrupted:
        sys.stderr.write("\nRun was interrupted; results are partial.\n")

    sys.stderr.write("\n")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sitescraper",
        description="Scrape structured content from web pages, optionally following same-domain links.",
    )
    parser.add_argument("urls", nargs="*", help="URL(s) to scrape (or use --url-file)")
    parser.add_argument("-f", "--format", dest="output_format", default="json",
                        help="Output format: json, csv, or text (default: json)")
    parser.add_argument("-t", "--timeout", type=int, default=30,
                        help="Request timeout in seconds (default: 30)")
    parser.add_argument("-u", "--user-agent", default=DEFAULT_USER_AGENT, help="User-Agent header")
    parser.add_argument("-p", "--proxy", help="Proxy URL (e.g. http://proxy.example.com:8080)")
    parser.add_argument("-s", "--selector", dest="selectors", action="append", default=[],
                        help="Custom CSS selector to extract (repeatable)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging, progress and summary")
    parser.add_argument("-q", "--quiet", action="store_true", help="Only log errors")
    parser.add_argument("-d", "--delay", dest="delay_ms", type=int, default=1000,
                        help="Delay between requests in milliseconds (default: 1000)")
    parser.add_argument("--crawl", action="store_true", help="Follow same-domain links")
    parser.add_argument("--max-depth", type=int, default=2, help="Maximum crawl depth (default: 2)")
    parser.add_argument("--max-pages", type=int, default=10,
                        help="Maximum number of pages to crawl (default: 10)")
    parser.add_argument("--metadata", action="store_true", help="Extract meta tags and Open Graph data")
    parser.add_argument("-o", "--output", help="Write output to this file instead of stdout")
    parser.add_argument("--url-file", help="Read URLs from a file (one URL per line)")
    parser.add_argument("--output-per-page", action="store_true",
                        help="Write each page to {output}_NNN.{ext} (requires --output)")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def _setup_logging(verbose: bool, quiet: bool) -> None:
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.ERROR
    else:
        level = logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def config_from_args(args: argparse.Namespace) -> ScrapeConfig:
    return ScrapeConfig(
        urls=list(args.urls),
        url_file=args.url_file,
        output_format=args.output_format,
        timeout=args.timeout,
        user_agent=args.user_agent,
        proxy=args.proxy,
        selectors=list(args.selectors),
        delay_ms=args.delay_ms,
        crawl=args.crawl,
        max_depth=args.max_depth,
        max_pages=args.max_pages,
        metadata=args.metadata,
        output=args.output,
        output_per_page=args.output_per_page,
        verbose=args.verbose,
        quiet=args.quiet,
    )


def write_output(records: List[PageRecord], config: ScrapeConfig) -> None:
    """Write rendered records to stdout, one file, or one file per page."""
    if config.output_per_page:
        extension = FORMAT_EXTENSIONS[config.output_format.lower()]
        LOGGER.info("Writing %d pages to individual files with prefix '%s'", len(records), config.output)
        for index, record in enumerate(records, start=1):
            path = Path(f"{config.output}_{index:03d}.{extension}")
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(render([record], config.output_format), encoding="utf-8")
            LOGGER.info("Saved: %s", path)
        return

    text = render(records, config.output_format)
    if config.output:
        path = Path(config.output)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
        LOGGER.info("Output saved to: %s", path)
    elif not config.quiet:
        print(text)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point for the scraper CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)
    config = config_from_args(args)
    _setup_logging(config.verbose, config.quiet)

    try:
        config.validate()
        urls = config.all_urls()
        if config.crawl and len(urls) > 1:
            LOGGER.info("Crawl mode: %d seed URLs share one frontier", len(urls))

        fetcher = RequestsFetcher()
        engine = CrawlEngine(
            fetcher=fetcher,
            rate_limiter=RateLimiter(config.delay_ms),
            verbose=config.verbose,
        )
        try:
            records = engine.run(
                urls,
                config.to_budget(),
                config.mode,
                config.to_fetch_options(),
                config.to_extract_options(),
            )
        finally:
            fetcher.close()
    except ConfigurationError as exc:
        LOGGER.error("%s", exc)
        sys.stderr.write(f"error: {exc}\n")
        return EXIT_CONFIG_ERROR

    if config.verbose:
        print_summary(engine.stats)

    write_output(records, config)

    succeeded = sum(1 for r in records if r.ok)
    LOGGER.info("Scraped %d page(s), %d successfully", len(records), succeeded)
    return EXIT_OK if succeeded else EXIT_ALL_FAILED


if __name__ == "__main__":
    raise SystemExit(main())
