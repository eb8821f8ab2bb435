"""
Web scraper that extracts structured content from pages and can follow
same-domain links breadth-first within a depth and page budget.
Outputs JSON, CSV or text.
"""
__version__ = "0.2.0"

from sitescraper.core import CrawlEngine, CrawlStats, RunState, crawl
from sitescraper.extractor import extract
from sitescraper.models import CrawlBudget, CrawlMode, ExtractOptions, PageRecord

__all__ = [
    "crawl",
    "extract",
    "CrawlBudget",
    "CrawlEngine",
    "CrawlMode",
    "CrawlStats",
    "ExtractOptions",
    "PageRecord",
    "RunState",
]
