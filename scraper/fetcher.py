import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

import requests

logger = logging.getLogger(__name__)

# sent on every request
USER_AGENT = "SiteBuilderBot/1.0 (site migration tool)"

PAGE_TIMEOUT = 8        # seconds; keeps a page fetch under a ~10s handler ceiling
AUX_TIMEOUT = 5         # robots.txt / sitemap.xml
MAX_CONTENT_BYTES = 5 * 1024 * 1024  # 5 MB ceiling to avoid runaway pages


@dataclass(frozen=True)
class FetchedPage:
    html: str
    final_url: str                      # may differ from the requested URL after redirects
    status_code: int


def _sync_fetch(url: str) -> Optional[FetchedPage]:
    """Synchronous fetch using requests; runs inside a thread executor."""
    headers = {
        "User-Agent": USER_AGENT,
        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    }
    try:
        response = requests.get(url, headers=headers, timeout=PAGE_TIMEOUT, allow_redirects=True)
    except requests.RequestException as exc:
        logger.warning("Fetch failed for %s: %s", url, exc)
        return None

    content_type = response.headers.get("Content-Type", "")
    if "text/html" not in content_type:
        logger.info("Skipping %s: content type %r", url, content_type)
        return None
    if not response.ok:
        logger.info("Skipping %s: HTTP %d", url, response.status_code)
        return None

    return FetchedPage(
        html=response.text[:MAX_CONTENT_BYTES],
        final_url=response.url,
        status_code=response.status_code,
    )


def _sync_fetch_text(url: str, timeout: float) -> Optional[str]:
    try:
        response = requests.get(url, headers={"User-Agent": USER_AGENT}, timeout=timeout)
    except requests.RequestException as exc:
        logger.info("Could not fetch %s: %s", url, exc)
        return None
    if not response.ok:
        return None
    return response.text


async def fetch_page(url: str) -> Optional[FetchedPage]:
    """
    Fetch an HTML page without blocking the event loop.

    Returns None for anything that should be treated as a skipped page:
    timeouts, network errors, non-2xx responses and non-HTML content.
    """
    loop = asyncio.get_event_loop()
    # requests only bounds connect and per-read gaps; this bounds the whole fetch
    try:
        return await asyncio.wait_for(loop.run_in_executor(None, _sync_fetch, url), PAGE_TIMEOUT)
    except asyncio.TimeoutError:
        logger.warning("Fetch timed out for %s after %ss", url, PAGE_TIMEOUT)
        return None


async def fetch_text(url: str, timeout: float = AUX_TIMEOUT) -> Optional[str]:
    """Fetch a plain-text resource (robots.txt, sitemap.xml); None on any failure."""
    loop = asyncio.get_event_loop()
    return await loop.run_in_executor(None, _sync_fetch_text, url, timeout)
