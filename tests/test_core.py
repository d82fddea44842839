from datetime import datetime, timezone
from unittest.mock import AsyncMock, patch

import pytest

from scraper.core import (
    MAX_DISCOVERED_PAGES,
    HomepageUnavailable,
    assemble_scraped_data,
    discover_site,
    parse_start_url,
    scrape_page,
    snapshot_document,
    snapshot_path,
)
from scraper.fetcher import FetchedPage
from scraper.models import NavLink, PageData, SkippedUrl

HOMEPAGE_HTML = """
<html><head><title>Acme</title></head>
<body>
    <nav><a href="/about">About</a><a href="/services/">Services</a></nav>
    <a href="/">Home</a>
    <a href="/admin/login">Staff</a>
    <a href="https://other.com/">Partner</a>
    <p>Call us at 555-123-4567 for a free quote.</p>
</body></html>
"""

ROBOTS = "User-agent: *\nDisallow: /admin/\n"
SITEMAP = """<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">
<url><loc>https://acme.com/about/</loc></url>
<url><loc>https://acme.com/blog</loc></url>
</urlset>"""


def _aux(robots=ROBOTS, sitemap=SITEMAP):
    async def fake_fetch_text(url, timeout=5):
        if url.endswith("/robots.txt"):
            return robots
        if url.endswith("/sitemap.xml"):
            return sitemap
        return None
    return fake_fetch_text


# --- parse_start_url ---

def test_bare_host_gets_https():
    assert parse_start_url("acme.com") == ("https://acme.com/", "https://acme.com", True, "non-www")


def test_www_and_plain_http():
    start_url, origin, ssl, prefix = parse_start_url("http://www.acme.com/home")
    assert start_url == "http://www.acme.com/home"
    assert origin == "http://www.acme.com"
    assert ssl is False
    assert prefix == "www"


def test_unparseable_start_url():
    with pytest.raises(ValueError):
        parse_start_url("https://")


# --- discover_site ---

@pytest.mark.asyncio
async def test_discover_merges_links_and_sitemap():
    homepage = FetchedPage(html=HOMEPAGE_HTML, final_url="https://acme.com/", status_code=200)
    with patch("scraper.core.fetch_text", side_effect=_aux()), \
         patch("scraper.core.fetch_page", new_callable=AsyncMock, return_value=homepage):
        result, html, final_url = await discover_site("acme.com", "acme")

    assert result.client_slug == "acme"
    assert result.source_url == "https://acme.com/"
    assert result.ssl is True
    assert result.robots_txt == ROBOTS
    assert result.robots_disallowed == ["/admin/"]
    assert result.sitemap_urls == ["https://acme.com/about", "https://acme.com/blog"]
    # start page excluded, /admin/ blocked, other origin dropped, /about deduplicated
    assert result.pages_to_scrape == [
        "https://acme.com/about",
        "https://acme.com/services",
        "https://acme.com/blog",
    ]
    assert result.homepage.slug == "index"
    assert result.homepage.phone_numbers == ["555-123-4567"]
    assert html == HOMEPAGE_HTML
    assert final_url == "https://acme.com/"


@pytest.mark.asyncio
async def test_discover_without_robots_or_sitemap():
    homepage = FetchedPage(html=HOMEPAGE_HTML, final_url="https://acme.com/", status_code=200)
    with patch("scraper.core.fetch_text", side_effect=_aux(robots=None, sitemap=None)), \
         patch("scraper.core.fetch_page", new_callable=AsyncMock, return_value=homepage):
        result, _, _ = await discover_site("https://acme.com", "acme")

    assert result.robots_txt is None
    assert result.sitemap_urls == []
    assert "https://acme.com/admin/login" in result.pages_to_scrape


@pytest.mark.asyncio
async def test_discover_caps_page_count():
    links = "".join(f'<a href="/page-{i}">Page {i}</a>' for i in range(80))
    homepage = FetchedPage(html=f"<body>{links}</body>", final_url="https://acme.com/", status_code=200)
    with patch("scraper.core.fetch_text", side_effect=_aux(robots=None, sitemap=None)), \
         patch("scraper.core.fetch_page", new_callable=AsyncMock, return_value=homepage):
        result, _, _ = await discover_site("acme.com", "acme")

    assert len(result.pages_to_scrape) == MAX_DISCOVERED_PAGES
    assert result.pages_to_scrape[0] == "https://acme.com/page-0"


@pytest.mark.asyncio
async def test_discover_homepage_unreachable():
    with patch("scraper.core.fetch_text", side_effect=_aux()), \
         patch("scraper.core.fetch_page", new_callable=AsyncMock, return_value=None):
        with pytest.raises(HomepageUnavailable, match="Could not fetch homepage at https://acme.com/"):
            await discover_site("acme.com", "acme")


# --- scrape_page ---

@pytest.mark.asyncio
async def test_scrape_page_success():
    fetched = FetchedPage(html=HOMEPAGE_HTML, final_url="https://acme.com/about-us", status_code=200)
    with patch("scraper.core.fetch_page", new_callable=AsyncMock, return_value=fetched):
        page, html = await scrape_page("https://acme.com/about")

    assert isinstance(page, PageData)
    assert page.url == "https://acme.com/about-us"
    assert page.slug == "about-us"
    assert html == HOMEPAGE_HTML


@pytest.mark.asyncio
async def test_scrape_page_failure_is_skipped_not_raised():
    with patch("scraper.core.fetch_page", new_callable=AsyncMock, return_value=None):
        result, html = await scrape_page("https://acme.com/gone")

    assert isinstance(result, SkippedUrl)
    assert result.url == "https://acme.com/gone"
    assert "Could not fetch https://acme.com/gone" in result.error
    assert html is None


# --- snapshots ---

def test_snapshot_path():
    assert snapshot_path("acme", "https://acme.com/services/roofing.html", "https://acme.com") == \
        "acme/services--roofing.html"


def test_snapshot_document_prefix():
    taken_at = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
    doc = snapshot_document("<html></html>", "https://acme.com/", taken_at)
    assert doc == (
        "<!-- Snapshot of https://acme.com/ taken on 2024-05-01T12:00:00+00:00 by Site Builder -->\n"
        "<html></html>"
    )


# --- assemble_scraped_data ---

@pytest.mark.asyncio
async def test_assemble_scraped_data():
    homepage_fetch = FetchedPage(html=HOMEPAGE_HTML, final_url="https://acme.com/", status_code=200)
    with patch("scraper.core.fetch_text", side_effect=_aux()), \
         patch("scraper.core.fetch_page", new_callable=AsyncMock, return_value=homepage_fetch):
        discovery, _, _ = await discover_site("acme.com", "acme")

    about = PageData(
        url="https://acme.com/about",
        slug="about",
        phone_numbers=["555-123-4567", "555-999-0000"],
        email_addresses=["hello@acme.com"],
        physical_address="1 Elm St",
    )
    contact = PageData(url="https://acme.com/contact", slug="contact", physical_address="2 Oak Ave")
    skipped = [SkippedUrl(url="https://acme.com/blog", error="timed out")]

    data = assemble_scraped_data(
        discovery, [about, contact], skipped, scraped_at=datetime(2024, 5, 1, tzinfo=timezone.utc)
    )

    assert data.scraped_at == "2024-05-01T00:00:00+00:00"
    assert data.total_pages == 3
    assert [p.slug for p in data.pages] == ["index", "about", "contact"]
    assert data.global_info.phone_numbers == ["555-123-4567", "555-999-0000"]
    assert data.global_info.email_addresses == ["hello@acme.com"]
    assert data.global_info.physical_address == "1 Elm St"
    assert data.global_info.navigation == [
        NavLink(text="About", href="/about"),
        NavLink(text="Services", href="/services/"),
    ]
    assert data.skipped == skipped

    stored = data.to_dict()
    assert "global" in stored and "global_info" not in stored
    assert stored["global"]["physical_address"] == "1 Elm St"
