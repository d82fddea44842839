import logging

from fastapi import APIRouter, Depends

from scraper.core import HomepageUnavailable, discover_site, scrape_page, snapshot_document, snapshot_path
from scraper.models import SkippedUrl
from scraper.urls import origin_of, slugify
from .. import store
from ..deps import require_user, run_blocking
from ..errors import BadRequest, UpstreamError
from ..schemas import ClientRequest, ScrapePageRequest, ok
from ..store import AuthenticatedUser

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


async def _store_snapshot(db, client_slug: str, html: str, final_url: str, origin: str):
    """Upload the raw page; returns the storage path, or None when the upload failed."""
    path = snapshot_path(client_slug, final_url, origin)
    uploaded = await run_blocking(store.upload_snapshot, db, path, snapshot_document(html, final_url))
    return path if uploaded else None


@router.post("/scrape-discover", summary="Discover the pages of a client's current website")
async def scrape_discover(request: ClientRequest, user: AuthenticatedUser = Depends(require_user)) -> dict:
    db = store.user_client(user.access_token)
    record = await run_blocking(store.get_client_record, db, request.client_id, "id, client_name, site_config")

    current_url = (record.get("site_config") or {}).get("current_website_url")
    if not current_url:
        raise BadRequest("Client has no current_website_url in site_config")

    client_slug = slugify(record["client_name"])
    try:
        discovery, html, final_url = await discover_site(current_url, client_slug)
    except ValueError:
        raise BadRequest(f"Invalid URL: {current_url}")
    except HomepageUnavailable as exc:
        raise UpstreamError(str(exc), status_code=502)

    origin = origin_of(discovery.source_url)
    stored = await _store_snapshot(db, client_slug, html, final_url, origin)
    if stored:
        discovery.homepage = discovery.homepage.with_snapshot(stored)

    return ok(data=discovery.to_dict())


@router.post("/scrape-page", summary="Scrape a single discovered page")
async def scrape_one_page(request: ScrapePageRequest, user: AuthenticatedUser = Depends(require_user)) -> dict:
    try:
        origin = origin_of(request.url)
    except ValueError:
        raise BadRequest(f"Invalid URL: {request.url}")

    result, html = await scrape_page(request.url)
    if isinstance(result, SkippedUrl):
        logger.info("Skipped %s", request.url)
        return ok(data={"skipped": True, **result.to_dict()})

    db = store.user_client(user.access_token)
    stored = await _store_snapshot(db, request.client_slug, html, result.url, origin)
    page = result.with_snapshot(stored) if stored else result

    return ok(data={"page": page.to_dict(), "skipped": False})
