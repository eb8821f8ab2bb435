"""Tests for sitescraper.fetcher."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
import requests

from sitescraper.errors import ConnectionFailure, FetchTimeout, TransportError
from sitescraper.fetcher import (
    FetchOptions,
    FetchResponse,
    RequestsFetcher,
    describe_http_status,
    detect_anti_bot,
)


def _session_returning(status=200, text="<html></html>", content_type="text/html", url="https://example.com/"):
    session = MagicMock(spec=requests.Session)
    response = MagicMock()
    response.status_code = status
    response.text = text
    response.url = url
    response.headers = {"content-type": content_type}
    session.get.return_value = response
    return session


class TestRequestsFetcher:
    def test_successful_fetch(self):
        session = _session_returning(text="<html><title>Hi</title></html>")
        fetcher = RequestsFetcher(session)
        resp = fetcher.fetch("https://example.com/", FetchOptions(timeout=5, user_agent="TestAgent/1.0"))
        assert resp.status_code == 200
        assert resp.body == "<html><title>Hi</title></html>"
        assert resp.is_html

        _, kwargs = session.get.call_args
        assert kwargs["timeout"] == 5
        assert kwargs["headers"] == {"User-Agent": "TestAgent/1.0"}
        assert kwargs["proxies"] is None
        assert kwargs["allow_redirects"] is True

    def test_proxy_applies_to_both_schemes(self):
        session = _session_returning()
        RequestsFetcher(session).fetch("https://example.com/", FetchOptions(proxy="http://proxy:8080"))
        _, kwargs = session.get.call_args
        assert kwargs["proxies"] == {"http": "http://proxy:8080", "https": "http://proxy:8080"}

    def test_non_2xx_is_returned_not_raised(self):
        session = _session_returning(status=404)
        resp = RequestsFetcher(session).fetch("https://example.com/missing", FetchOptions())
        assert resp.status_code == 404

    def test_timeout(self):
        session = MagicMock(spec=requests.Session)
        session.get.side_effect = requests.Timeout("read timed out")
        with pytest.raises(FetchTimeout) as exc_info:
            RequestsFetcher(session).fetch("https://example.com/", FetchOptions(timeout=3))
        assert exc_info.value.kind == "timeout"
        assert "3 seconds" in str(exc_info.value)

    def test_connection_error(self):
        session = MagicMock(spec=requests.Session)
        session.get.side_effect = requests.ConnectionError("refused")
        with pytest.raises(ConnectionFailure):
            RequestsFetcher(session).fetch("https://example.com/", FetchOptions())

    def test_other_request_errors(self):
        session = MagicMock(spec=requests.Session)
        session.get.side_effect = requests.TooManyRedirects("loop")
        with pytest.raises(TransportError):
            RequestsFetcher(session).fetch("https://example.com/", FetchOptions())


class TestFetchResponse:
    def test_html_content_type(self):
        assert FetchResponse("u", 200, content_type="text/html; charset=utf-8").is_html
        assert FetchResponse("u", 200, content_type="application/xhtml+xml").is_html

    def test_missing_content_type_treated_as_html(self):
        assert FetchResponse("u", 200).is_html

    def test_binary_content(self):
        assert not FetchResponse("u", 200, content_type="application/pdf").is_html


class TestDescribeHttpStatus:
    def test_success(self):
        assert describe_http_status(200, "https://example.com") is None
        assert describe_http_status(204, "https://example.com") is None

    @pytest.mark.parametrize(
        "status, fragment",
        [
            (403, "Forbidden"),
            (404, "Not Found"),
            (429, "Too many requests"),
            (500, "Internal Server Error"),
            (503, "Service Unavailable"),
        ],
    )
    def test_known_codes(self, status, fragment):
        message = describe_http_status(status, "https://example.com/x")
        assert fragment in message
        assert "https://example.com/x" in message

    def test_unknown_code(self):
        assert describe_http_status(418, "https://example.com") == "HTTP error 418 while accessing https://example.com"


class TestDetectAntiBot:
    def test_cloudflare(self):
        assert "Cloudflare" in detect_anti_bot('<div class="cf-browser-verification"></div>')

    def test_recaptcha(self):
        assert "reCAPTCHA" in detect_anti_bot('<div class="g-recaptcha"></div>')

    def test_hcaptcha(self):
        assert "hCaptcha" in detect_anti_bot('<div class="h-captcha"></div>')

    def test_datadome(self):
        assert "DataDome" in detect_anti_bot("<script src='https://js.datadome.co'></script>")

    def test_title_access_denied(self):
        assert "Access restriction" in detect_anti_bot("<html></html>", "Access Denied")

    def test_clean_page(self):
        assert detect_anti_bot("<html><body><p>Hello</p></body></html>", "Welcome") is None
