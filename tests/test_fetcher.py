import threading
import time
from unittest.mock import MagicMock, patch

import pytest
import requests

from scraper.fetcher import USER_AGENT, fetch_page, fetch_text


def _response(status=200, content_type="text/html; charset=utf-8", text="<html></html>", url="https://acme.com/"):
    response = MagicMock()
    response.status_code = status
    response.ok = status < 400
    response.headers = {"Content-Type": content_type}
    response.text = text
    response.url = url
    return response


@pytest.mark.asyncio
async def test_fetch_page_returns_final_url():
    with patch("scraper.fetcher.requests.get", return_value=_response(url="https://www.acme.com/")) as mock_get:
        page = await fetch_page("https://acme.com/")

    assert page.final_url == "https://www.acme.com/"
    assert page.status_code == 200
    assert mock_get.call_args.kwargs["headers"]["User-Agent"] == USER_AGENT


@pytest.mark.asyncio
async def test_fetch_page_non_html_is_none():
    with patch("scraper.fetcher.requests.get", return_value=_response(content_type="application/pdf")):
        assert await fetch_page("https://acme.com/menu.pdf") is None


@pytest.mark.asyncio
async def test_fetch_page_error_status_is_none():
    with patch("scraper.fetcher.requests.get", return_value=_response(status=404)):
        assert await fetch_page("https://acme.com/missing") is None


@pytest.mark.asyncio
async def test_fetch_page_timeout_is_none():
    with patch("scraper.fetcher.requests.get", side_effect=requests.Timeout("slow")):
        assert await fetch_page("https://acme.com/") is None


@pytest.mark.asyncio
async def test_fetch_text():
    with patch("scraper.fetcher.requests.get", return_value=_response(text="User-agent: *")):
        assert await fetch_text("https://acme.com/robots.txt") == "User-agent: *"

    with patch("scraper.fetcher.requests.get", side_effect=requests.ConnectionError("refused")):
        assert await fetch_text("https://acme.com/robots.txt") is None


@pytest.mark.asyncio
async def test_fetch_page_slow_body_is_cut_off():
    release = threading.Event()

    def trickle(*args, **kwargs):
        # a body that keeps arriving never trips requests' read timeout
        release.wait(5)
        return _response()

    start = time.monotonic()
    try:
        with patch("scraper.fetcher.PAGE_TIMEOUT", 0.2), \
             patch("scraper.fetcher.requests.get", side_effect=trickle):
            page = await fetch_page("https://acme.com/")
    finally:
        release.set()

    assert page is None
    assert time.monotonic() - start < 2
