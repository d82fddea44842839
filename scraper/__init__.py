from .core import assemble_scraped_data, discover_site, scrape_page
from .fetcher import fetch_page
from .parser import extract_internal_links, extract_page_data
from .models import PageData, ScrapedData
from .urls import normalize_url, url_to_slug

__all__ = [
    "assemble_scraped_data", "discover_site", "scrape_page", "fetch_page",
    "extract_internal_links", "extract_page_data", "PageData", "ScrapedData",
    "normalize_url", "url_to_slug",
]
