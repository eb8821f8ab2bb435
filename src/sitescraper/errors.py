"""
Error taxonomy for the scraper.

Only ConfigurationError aborts a run. Everything else is caught at URL,
selector or page granularity and recorded on the affected PageRecord.
"""
from __future__ import annotations


class ScraperError(Exception):
    """Base class for all scraper errors."""


class UrlError(ScraperError, ValueError):
    """A URL is malformed or not crawlable (mailto:, javascript:, ...)."""

    def __init__(self, raw: str, reason: str = "invalid URL") -> None:
        super().__init__(f"{reason}: {raw!r}")
        self.raw = raw
        self.reason = reason


class TransportError(ScraperError):
    """The request failed before any HTTP response was received."""

    kind = "connection_error"


class FetchTimeout(TransportError):
    """The request exceeded the configured timeout."""

    kind = "timeout"

    def __init__(self, url: str, timeout: float) -> None:
        super().__init__(f"Timeout: request to {url} took longer than {timeout:g} seconds")
        self.url = url
        self.timeout = timeout


class ConnectionFailure(TransportError):
    """DNS, TLS, proxy or connection-level failure."""


class HttpStatusError(ScraperError):
    """A response arrived with a non-2xx status code."""

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(f"HTTP {status_code}: {message}")
        self.status_code = status_code
        self.message = message


class InvalidSelectorError(ScraperError):
    """A user-supplied CSS selector could not be compiled."""

    def __init__(self, selector: str, detail: str = "") -> None:
        message = f"Invalid selector '{selector}'"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
        self.selector = selector


class ConfigurationError(ScraperError):
    """Invalid run configuration; raised before any fetch happens."""
