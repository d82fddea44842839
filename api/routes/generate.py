import asyncio
import logging

from fastapi import APIRouter, Depends

from generation.files import (
    build_section_map,
    build_vercel_json,
    files_to_generate,
    find_matching_scraped_page,
    logo_extension,
    parse_service_slugs,
    strip_fences,
)
from generation.prompts import GENERATE_SYSTEM_PROMPT, page_prompt, site_config_prompt, theme_css_prompt
from gitdata.client import GitHubAPIError
from gitdata.commit import FileEntry, commit_files
from .. import store
from ..deps import chat_model, github_client, repo_coordinates, require_user, run_blocking
from ..errors import NotFound
from ..schemas import ClientRequest, GenerateCommitRequest, GeneratePageRequest, ok
from ..store import AuthenticatedUser

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")

CLIENT_COLUMNS = "id, client_name, github_owner, github_repo, site_config"
SERVICE_PAGE_TEMPLATE = "src/pages/services/service-one.astro"
MIN_GENERATED_LENGTH = 50


async def _load_client(user: AuthenticatedUser, client_id: str) -> dict:
    db = store.user_client(user.access_token)
    return await run_blocking(store.get_client_record, db, client_id, CLIENT_COLUMNS)


@router.post("/generate-config", summary="Generate siteConfig.ts, theme.css and the file plan")
async def generate_config(request: ClientRequest, user: AuthenticatedUser = Depends(require_user)) -> dict:
    record = await _load_client(user, request.client_id)
    owner, repo = repo_coordinates(record)
    site_config = record.get("site_config") or {}
    brief = site_config.get("creative_brief") or {}
    scraped = site_config.get("scraped_data") or {}
    settings = site_config.get("generation_settings") or {}

    gh = github_client(owner, repo)
    template_config, template_theme = await asyncio.gather(
        run_blocking(gh.get_file, "src/data/siteConfig.ts"),
        run_blocking(gh.get_file, "src/styles/theme.css"),
    )

    pages = scraped.get("pages") or []
    homepage = next((p for p in pages if p.get("slug") == "index"), pages[0] if pages else {})
    logo_data_url = site_config.get("logo_data_url")

    model = chat_model()
    config_source = strip_fences(await run_blocking(
        model.ask,
        GENERATE_SYSTEM_PROMPT,
        site_config_prompt(
            record["client_name"],
            template_config,
            brief,
            scraped.get("global") or {},
            (homepage.get("body_text") or "")[:800],
            repo,
            logo_ext=logo_extension(logo_data_url) if logo_data_url else None,
        ),
    ))
    theme_css = strip_fences(await run_blocking(
        model.ask, GENERATE_SYSTEM_PROMPT, theme_css_prompt(record["client_name"], template_theme, brief)
    ))

    service_slugs = parse_service_slugs(config_source)
    logger.info("Generated config for %s with %d services", record["client_name"], len(service_slugs))

    return ok(data={
        "siteConfig": config_source,
        "themeCss": theme_css,
        "sectionMap": build_section_map(service_slugs),
        "vercelJson": build_vercel_json(settings.get("redirect_map") or []),
        "filesToGenerate": files_to_generate(service_slugs),
    })


@router.post("/generate-page", summary="Generate one site file from its template")
async def generate_page(request: GeneratePageRequest, user: AuthenticatedUser = Depends(require_user)) -> dict:
    record = await _load_client(user, request.client_id)
    owner, repo = repo_coordinates(record)
    site_config = record.get("site_config") or {}
    brief = site_config.get("creative_brief") or {}
    scraped = site_config.get("scraped_data") or {}
    settings = site_config.get("generation_settings") or {}
    file_path = request.file_path

    gh = github_client(owner, repo)
    try:
        template = await run_blocking(gh.get_file, file_path)
    except GitHubAPIError:
        # service pages named after the client's services don't exist in the template repo yet
        if not file_path.startswith("src/pages/services/"):
            raise NotFound(f"Template file not found: {file_path}")
        template = await run_blocking(gh.get_file, SERVICE_PAGE_TEMPLATE)

    pages = scraped.get("pages") or []
    testimonials = [t for page in pages for t in page.get("testimonials") or []]
    prompt = page_prompt(
        record["client_name"],
        file_path,
        template,
        request.site_config_content,
        brief,
        matched_page=find_matching_scraped_page(pages, file_path),
        testimonials=testimonials,
        preserve_meta=settings.get("preserve_meta") is True,
    )

    model = chat_model()
    generated = strip_fences(await run_blocking(model.ask, GENERATE_SYSTEM_PROMPT, prompt))
    if len(generated) < MIN_GENERATED_LENGTH:
        logger.warning("Short output for %s (%d chars), asking again", file_path, len(generated))
        generated = strip_fences(await run_blocking(model.ask, GENERATE_SYSTEM_PROMPT, prompt))

    return ok(data={"path": file_path, "content": generated})


@router.post("/generate-commit", summary="Commit all generated files in one commit")
async def generate_commit(request: GenerateCommitRequest, user: AuthenticatedUser = Depends(require_user)) -> dict:
    record = await _load_client(user, request.client_id)
    owner, repo = repo_coordinates(record)

    files = [FileEntry(path=f.path, content=f.content, encoding=f.encoding) for f in request.files]
    message = (
        "Generated site from creative brief\n\n"
        f"{len(files)} files generated for {record['client_name']}"
    )
    result = await run_blocking(commit_files, github_client(owner, repo), files, message)

    return ok(data={"commit_sha": result.sha, "commit_url": result.url})
