"""
URL canonicalization and domain checks.
"""
from __future__ import annotations

from urllib.parse import urldefrag, urljoin, urlparse, urlunparse

from sitescraper.errors import UrlError

# Pre-defined file extensions to skip (frozen set for O(1) lookup)
SKIP_EXTENSIONS: frozenset[str] = frozenset((
    ".jpg", ".jpeg", ".png", ".gif", ".webp", ".svg",
    ".pdf", ".zip", ".rar", ".7z",
    ".mp4", ".mp3", ".wav", ".webm",
    ".css", ".js", ".map", ".ico",
    ".woff", ".woff2", ".ttf", ".eot",
))

CRAWLABLE_SCHEMES: frozenset[str] = frozenset(("http", "https"))

DEFAULT_PORTS = {"http": 80, "https": 443}


def canonicalize(base: str, raw: str) -> str:
    """
    Resolve ``raw`` against ``base`` and normalize it for de-duplication.

    - Joins relative URLs (path, root, protocol-relative, bare fragment)
    - Drops fragments (#...)
    - Lowercases scheme and host
    - Removes default ports (:80, :443)
    - Keeps querystrings (they matter for uniqueness)

    Raises UrlError when the result is not an absolute http(s) URL.
    """
    if raw is None:
        raise UrlError("", "empty URL")
    raw = raw.strip()
    if not raw:
        raise UrlError(raw, "empty URL")

    try:
        joined, _ = urldefrag(urljoin(base, raw))
        parsed = urlparse(joined)
        port = parsed.port
    except ValueError as exc:
        raise UrlError(raw, f"malformed URL ({exc})") from exc

    scheme = parsed.scheme.lower()
    if scheme not in CRAWLABLE_SCHEMES:
        raise UrlError(raw, f"unsupported scheme '{scheme or 'none'}'")

    hostname = (parsed.hostname or "").lower()
    if not hostname:
        raise UrlError(raw, "missing host")

    if ":" in hostname:
        # IPv6 literal
        hostname = f"[{hostname}]"

    if port is None or port == DEFAULT_PORTS[scheme]:
        netloc = hostname
    else:
        netloc = f"{hostname}:{port}"

    return urlunparse((
        scheme,
        netloc,
        parsed.path or "/",
        parsed.params,
        parsed.query,
        "",  # No fragment
    ))


def host_of(url: str) -> str:
    """Return the lowercase host of a URL, without port."""
    try:
        return (urlparse(url).hostname or "").lower()
    except ValueError:
        return ""


def same_domain(a: str, b: str) -> bool:
    """Check if two URLs share the same host (scheme and port are ignored)."""
    host_a = host_of(a)
    return bool(host_a) and host_a == host_of(b)


def is_page_url(url: str) -> bool:
    """False for URLs that obviously point at static assets rather than pages."""
    path_lower = (urlparse(url).path or "").lower()
    return not any(path_lower.endswith(ext) for ext in SKIP_EXTENSIONS)
