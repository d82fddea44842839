import logging
from typing import Optional

from fastapi import APIRouter, Depends

from generation.files import parse_service_slugs
from generation.llm import EditReply, user_message
from generation.prompts import EDIT_SYSTEM_PROMPT, edit_prompt, new_page_prompt
from generation.sections import PAGE_SECTIONS, page_file_map, resolve_file_path
from gitdata.commit import FileEntry, commit_contents
from .. import store
from ..config import get_env
from ..deps import chat_model, github_client, repo_coordinates, require_user, run_blocking
from ..errors import BadRequest
from ..schemas import EditRequest, PublishRequest, ok
from ..store import AuthenticatedUser

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")

EDITOR_TITLE = "Site Builder Editor"
SITE_CONFIG_PATH = "src/data/siteConfig.ts"


async def _target_repo(user: AuthenticatedUser, client_id: Optional[str]) -> tuple[str, str]:
    """The client's repo when a client_id is given, else the site this service is deployed beside."""
    if client_id:
        db = store.user_client(user.access_token)
        record = await run_blocking(
            store.get_client_record, db, client_id, "id, github_owner, github_repo, site_config"
        )
        return repo_coordinates(record)
    return get_env("GITHUB_OWNER"), get_env("GITHUB_REPO")


async def _client_page_files(gh) -> dict[str, str]:
    """Page map for the services a generated site actually declares."""
    slugs = parse_service_slugs(await run_blocking(gh.get_file, SITE_CONFIG_PATH))
    return page_file_map(slugs) if slugs else page_file_map()


@router.post("/edit", summary="Ask the model to edit, replace or add a page section")
async def edit_section(request: EditRequest, user: AuthenticatedUser = Depends(require_user)) -> dict:
    history = [turn.model_dump() for turn in request.conversationHistory]
    images = [request.referenceImage] if request.referenceImage else None
    has_image = images is not None

    if request.action == "new-page":
        prompt = new_page_prompt(request.message, request.referenceUrl, has_image)
        reply = await run_blocking(
            chat_model(title=EDITOR_TITLE).converse, EDIT_SYSTEM_PROMPT, history, user_message(prompt, images), EditReply
        )
        return ok(message=reply.explanation, modifiedCode=reply.code, originalCode=None, filePath=None)

    gh = None
    page_files = None
    if request.client_id and request.section in PAGE_SECTIONS:
        gh = github_client(*await _target_repo(user, request.client_id))
        page_files = await _client_page_files(gh)

    file_path = resolve_file_path(request.section, request.currentPage, page_files)
    if not file_path:
        raise BadRequest(
            f'Could not resolve file path for section "{request.section}" on page "{request.currentPage}"'
        )

    if gh is None:
        gh = github_client(*await _target_repo(user, request.client_id))
    original_code = await run_blocking(gh.get_file, file_path)

    prompt = edit_prompt(
        request.action,
        request.section,
        original_code,
        request.message,
        request.referenceUrl,
        has_image,
        request.isGlobal,
    )
    reply = await run_blocking(
        chat_model(title=EDITOR_TITLE).converse, EDIT_SYSTEM_PROMPT, history, user_message(prompt, images), EditReply
    )
    return ok(message=reply.explanation, modifiedCode=reply.code, originalCode=original_code, filePath=file_path)


@router.post("/publish", summary="Commit accepted edits to the site repository")
async def publish(request: PublishRequest, user: AuthenticatedUser = Depends(require_user)) -> dict:
    owner, repo = await _target_repo(user, request.client_id)
    files = [FileEntry(path=edit.filePath, content=edit.modifiedCode) for edit in request.edits]

    result = await run_blocking(commit_contents, github_client(owner, repo), files, request.commitMessage)

    if request.client_id:
        db = store.user_client(user.access_token)
        await run_blocking(
            store.record_edits, db, request.client_id, [e.model_dump() for e in request.edits], result.sha
        )

    count = len(files)
    return ok(
        message=f"{count} file{'s' if count != 1 else ''} updated successfully",
        commitSha=result.sha,
        commitUrl=result.url,
    )
