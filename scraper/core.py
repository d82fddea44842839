import asyncio
import logging
from datetime import datetime, timezone
from typing import Optional, Union
from urllib.parse import urlsplit

from .fetcher import fetch_page, fetch_text
from .models import DiscoveryResult, GlobalInfo, PageData, ScrapedData, SkippedUrl
from .parser import extract_internal_links, extract_page_data
from .robots import is_blocked_by_robots, parse_robots_txt
from .sitemap import parse_sitemap_xml
from .urls import normalize_url, origin_of, url_to_slug

logger = logging.getLogger(__name__)

# homepage + 49 = 50 pages per site
MAX_DISCOVERED_PAGES = 49


class HomepageUnavailable(Exception):
    """The start URL could not be fetched, so there is nothing to discover from."""


def parse_start_url(raw: str) -> tuple[str, str, bool, str]:
    """
    Accept a user-entered site address, bare host or full URL.

    Returns (start_url, origin, ssl, canonical_prefix). Raises ValueError
    for anything that does not parse to an http(s) URL with a host.
    """
    candidate = raw.strip()
    if not candidate.startswith("http"):
        candidate = f"https://{candidate}"

    parts = urlsplit(candidate)
    if parts.scheme not in ("http", "https") or not parts.hostname:
        raise ValueError(f"Invalid URL: {raw}")

    origin = origin_of(candidate)
    start_url = f"{origin}{parts.path or '/'}"
    if parts.query:
        start_url += f"?{parts.query}"

    ssl = parts.scheme == "https"
    canonical_prefix = "www" if parts.hostname.startswith("www.") else "non-www"
    return start_url, origin, ssl, canonical_prefix


def snapshot_path(client_slug: str, final_url: str, origin: str) -> str:
    return f"{client_slug}/{url_to_slug(final_url, origin)}.html"


def snapshot_document(html: str, final_url: str, taken_at: Optional[datetime] = None) -> str:
    """Prefix the raw HTML with a provenance comment before it is stored."""
    taken_at = taken_at or datetime.now(timezone.utc)
    comment = f"<!-- Snapshot of {final_url} taken on {taken_at.isoformat()} by Site Builder -->\n"
    return comment + html


async def _robots_rules(origin: str) -> tuple[Optional[str], list[str]]:
    robots_txt = await fetch_text(f"{origin}/robots.txt")
    if robots_txt is None:
        return None, []
    return robots_txt, parse_robots_txt(robots_txt)


async def _sitemap_urls(origin: str) -> list[str]:
    xml = await fetch_text(f"{origin}/sitemap.xml")
    if xml is None:
        return []
    return parse_sitemap_xml(xml, origin)


async def discover_site(raw_url: str, client_slug: str) -> tuple[DiscoveryResult, str, str]:
    """
    First step of a crawl: robots.txt, sitemap.xml and the homepage.

    Returns the discovery result together with the homepage's raw HTML and
    final URL so the caller can store a snapshot. robots.txt and sitemap.xml
    are optional; an unreachable homepage raises HomepageUnavailable.
    """
    start_url, origin, ssl, canonical_prefix = parse_start_url(raw_url)

    (robots_txt, disallowed), sitemap_urls = await asyncio.gather(
        _robots_rules(origin),
        _sitemap_urls(origin),
    )

    fetched = await fetch_page(start_url)
    if fetched is None:
        raise HomepageUnavailable(
            f"Could not fetch homepage at {start_url}. The site may be down or blocking our request."
        )

    homepage = extract_page_data(fetched.html, fetched.final_url, origin)
    homepage_links = extract_internal_links(fetched.html, fetched.final_url, origin)

    start_key = normalize_url(start_url, origin)
    discovered: dict[str, None] = {}
    for link in homepage_links + sitemap_urls:
        normalized = normalize_url(link, origin)
        if not normalized or normalized == start_key:
            continue
        if is_blocked_by_robots(urlsplit(normalized).path, disallowed):
            logger.debug("robots.txt blocks %s", normalized)
            continue
        discovered[normalized] = None

    pages_to_scrape = list(discovered)[:MAX_DISCOVERED_PAGES]
    logger.info(
        "Discovered %d pages on %s (%d from sitemap, %d disallowed rules)",
        len(pages_to_scrape), origin, len(sitemap_urls), len(disallowed),
    )

    result = DiscoveryResult(
        client_slug=client_slug,
        source_url=start_url,
        canonical_prefix=canonical_prefix,
        ssl=ssl,
        robots_txt=robots_txt,
        robots_disallowed=disallowed,
        sitemap_urls=sitemap_urls,
        pages_to_scrape=pages_to_scrape,
        homepage=homepage,
    )
    return result, fetched.html, fetched.final_url


async def scrape_page(url: str) -> tuple[Union[PageData, SkippedUrl], Optional[str]]:
    """
    Fetch and extract one page. Never raises for fetch problems.

    Returns (PageData, raw_html) on success, (SkippedUrl, None) when the page
    timed out, was not HTML or answered with an error status.
    """
    origin = origin_of(url)
    fetched = await fetch_page(url)
    if fetched is None:
        return SkippedUrl(
            url=url,
            error=f"Could not fetch {url}: page may be down, non-HTML, or timed out",
        ), None

    return extract_page_data(fetched.html, fetched.final_url, origin), fetched.html


def assemble_scraped_data(
    discovery: DiscoveryResult,
    pages: list[PageData],
    skipped: Optional[list[SkippedUrl]] = None,
    scraped_at: Optional[datetime] = None,
) -> ScrapedData:
    """
    Fold a discovery result and the per-page results into one ScrapedData.

    The homepage goes first. Contact lists are merged in page order without
    duplicates, the first address found wins, navigation comes from the homepage.
    """
    all_pages = [discovery.homepage] + [p for p in pages if p.url != discovery.homepage.url]

    phones: dict[str, None] = {}
    emails: dict[str, None] = {}
    socials: dict[str, None] = {}
    address = None
    for page in all_pages:
        phones.update(dict.fromkeys(page.phone_numbers))
        emails.update(dict.fromkeys(page.email_addresses))
        socials.update(dict.fromkeys(page.social_links))
        if address is None and page.physical_address:
            address = page.physical_address

    return ScrapedData(
        scraped_at=(scraped_at or datetime.now(timezone.utc)).isoformat(),
        source_url=discovery.source_url,
        canonical_prefix=discovery.canonical_prefix,
        ssl=discovery.ssl,
        total_pages=len(all_pages),
        sitemap_urls=list(discovery.sitemap_urls),
        robots_txt=discovery.robots_txt,
        global_info=GlobalInfo(
            phone_numbers=list(phones),
            email_addresses=list(emails),
            physical_address=address,
            social_links=list(socials),
            navigation=list(discovery.homepage.navigation),
        ),
        pages=all_pages,
        skipped=list(skipped or []),
    )
