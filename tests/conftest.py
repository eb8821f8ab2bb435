"""Shared fixtures: an in-memory fetcher and a fake clock."""

from __future__ import annotations

from typing import Dict, Iterable, List, Tuple, Union

import pytest

from sitescraper.fetcher import FetchOptions, FetchResponse
from sitescraper.ratelimit import RateLimiter


def page(title: str = "Page", links: Iterable[str] = (), body: str = "") -> str:
    anchors = "".join(f'<a href="{href}">{href}</a>' for href in links)
    return (
        f"<html><head><title>{title}</title></head>"
        f"<body><h1>{title}</h1>{body}{anchors}</body></html>"
    )


class FakeFetcher:
    """Serves canned responses keyed by URL; unknown URLs are 404s."""

    def __init__(self, pages: Dict[str, Union[str, FetchResponse, BaseException]]) -> None:
        self.pages = pages
        self.calls: List[Tuple[str, FetchOptions]] = []
        self.closed = False

    def fetch(self, url: str, options: FetchOptions) -> FetchResponse:
        self.calls.append((url, options))
        entry = self.pages.get(url)
        if isinstance(entry, BaseException):
            raise entry
        if isinstance(entry, FetchResponse):
            return entry
        if entry is None:
            return FetchResponse(url=url, status_code=404, body="<html><title>Missing</title></html>",
                                 content_type="text/html")
        return FetchResponse(url=url, status_code=200, body=entry, content_type="text/html; charset=utf-8")

    @property
    def fetched_urls(self) -> List[str]:
        return [url for url, _ in self.calls]

    def close(self) -> None:
        self.closed = True


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class CountingLimiter(RateLimiter):
    def __init__(self) -> None:
        super().__init__(0)
        self.calls = 0

    def wait_if_needed(self) -> float:
        self.calls += 1
        return 0.0


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def counting_limiter() -> CountingLimiter:
    return CountingLimiter()
