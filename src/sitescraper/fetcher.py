"""
HTTP fetching boundary.

The crawl engine only depends on the Fetcher protocol; RequestsFetcher is the
default implementation on top of a requests.Session.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Protocol

import requests

from sitescraper.errors import ConnectionFailure, FetchTimeout, TransportError

LOGGER = logging.getLogger(__name__)

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


@dataclass(slots=True, frozen=True)
class FetchOptions:
    timeout: float = 30.0
    user_agent: str = DEFAULT_USER_AGENT
    proxy: Optional[str] = None


@dataclass(slots=True)
class FetchResponse:
    url: str
    status_code: int
    body: str = ""
    content_type: str = ""

    @property
    def is_html(self) -> bool:
        # Servers that send no content-type are given the benefit of the doubt
        content_type = self.content_type.lower()
        return not content_type or "html" in content_type


class Fetcher(Protocol):
    def fetch(self, url: str, options: FetchOptions) -> FetchResponse:
        """Perform one GET. Raises TransportError when no response is received."""
        ...


class RequestsFetcher:
    """Fetcher backed by a shared requests.Session."""

    def __init__(self, session: Optional[requests.Session] = None) -> None:
        self._session = session or requests.Session()

    def fetch(self, url: str, options: FetchOptions) -> FetchResponse:
        proxies = None
        if options.proxy:
            LOGGER.debug("Using proxy: %s", options.proxy)
            proxies = {"http": options.proxy, "https": options.proxy}

        try:
            resp = self._session.get(
                url,
                timeout=options.timeout,
                headers={"User-Agent": options.user_agent},
                proxies=proxies,
                allow_redirects=True,
            )
        except requests.Timeout as exc:
            raise FetchTimeout(url, options.timeout) from exc
        except requests.ConnectionError as exc:
            raise ConnectionFailure(f"Connection failed to {url}: {exc}") from exc
        except requests.RequestException as exc:
            raise TransportError(f"Request error for {url}: {exc}") from exc

        return FetchResponse(
            url=resp.url or url,
            status_code=resp.status_code,
            body=resp.text or "",
            content_type=resp.headers.get("content-type") or "",
        )

    def close(self) -> None:
        self._session.close()


_STATUS_MESSAGES = {
    400: "Bad Request - The server couldn't understand the request to {url}",
    401: "Unauthorized - Authentication required to access {url}",
    403: "Forbidden - Access denied to {url}. This may indicate bot protection.",
    404: "Not Found - The page {url} does not exist",
    429: "Too many requests to {url}. Please slow down and try again later.",
    500: "Internal Server Error - The server at {url} encountered an error",
    502: "Bad Gateway - The server at {url} received an invalid response",
    503: "Service Unavailable - The server at {url} is temporarily unavailable",
    504: "Gateway Timeout - The server at {url} took too long to respond",
}


def describe_http_status(status_code: int, url: str) -> Optional[str]:
    """Return a user-friendly message for a non-2xx status, None for 2xx."""
    if 200 <= status_code < 300:
        return None
    template = _STATUS_MESSAGES.get(status_code, "HTTP error {status} while accessing {url}")
    return template.format(url=url, status=status_code)


def detect_anti_bot(html: str, title: Optional[str] = None) -> Optional[str]:
    """Detect common anti-bot protection pages. Returns a description or None."""
    if "cf-browser-verification" in html or ("Cloudflare" in html and "challenge-platform" in html):
        return "Cloudflare protection detected. The site is checking if you're a bot."
    if "Cloudflare Ray ID" in html or "cf-ray" in html:
        return "Cloudflare error page detected. Access may be restricted."
    if "recaptcha" in html:
        return "reCAPTCHA detected. Human verification required."
    if "hcaptcha" in html or "h-captcha" in html:
        return "hCaptcha detected. Human verification required."
    if "PerimeterX" in html or "px-captcha" in html:
        return "PerimeterX bot detection detected."
    if "datadome" in html or "DataDome" in html:
        return "DataDome bot protection detected."
    if "akamai" in html and ("bot" in html or "challenge" in html):
        return "Akamai bot protection detected."

    if title:
        title_lower = title.lower()
        if any(marker in title_lower for marker in ("access denied", "blocked", "forbidden", "captcha")):
            return f"Access restriction detected: '{title}'"

    if "Just a moment" in html or "Checking your browser" in html:
        return "Cloudflare JavaScript challenge detected."

    return None
