"""
Provisioning of a new client site.

Steps run in order and stop at the first failure, except the deploy trigger
which is allowed to fail. Each step tolerates its resource already existing,
so a failed run can simply be repeated.
"""
import logging
from dataclasses import asdict, dataclass, field
from typing import Optional

from fastapi import APIRouter, Depends

from gitdata.client import GitHubAPIError, GitHubClient
from gitdata.hosting import HostingAPIError, VercelClient
from scraper.urls import slugify
from .. import store
from ..config import GITHUB_TEMPLATE_REPO, get_env
from ..deps import require_user, run_blocking
from ..errors import BadRequest, UpstreamError
from ..schemas import ClientRequest, ok
from ..store import AuthenticatedUser

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")

# copied onto the hosting project so the generated site can call back into this API
FORWARDED_ENV = ("OPENROUTER_API_KEY", "GITHUB_TOKEN", "SUPABASE_URL", "SUPABASE_ANON_KEY")


@dataclass
class StepResult:
    step: str
    success: bool
    data: Optional[dict] = None
    error: Optional[str] = None

    def to_dict(self) -> dict:
        return {k: v for k, v in asdict(self).items() if v is not None}


@dataclass
class Provisioning:
    github: GitHubClient
    vercel: VercelClient
    completed: list[StepResult] = field(default_factory=list)

    @property
    def slug(self) -> str:
        return self.github.repo

    @property
    def owner(self) -> str:
        return self.github.owner


def create_repo(p: Provisioning) -> StepResult:
    if p.github.repo_exists():
        return StepResult("create_repo", True, {"repoName": p.slug, "alreadyExisted": True})
    try:
        p.github.generate_from_template(GITHUB_TEMPLATE_REPO, f"Client site: {p.slug}")
    except GitHubAPIError as exc:
        return StepResult("create_repo", False, error=str(exc))
    return StepResult("create_repo", True, {"repoName": p.slug, "alreadyExisted": False})


def create_project(p: Provisioning) -> StepResult:
    url = f"https://{p.slug}.vercel.app"
    existing = p.vercel.get_project(p.slug)
    if existing:
        return StepResult("create_project", True, {"projectId": existing["id"], "url": url, "alreadyExisted": True})
    try:
        project = p.vercel.create_project(p.slug, f"{p.owner}/{p.slug}")
    except HostingAPIError as exc:
        return StepResult("create_project", False, error=str(exc))
    return StepResult("create_project", True, {"projectId": project["id"], "url": url, "alreadyExisted": False})


def set_env_vars(p: Provisioning, project_id: str) -> StepResult:
    env = {key: get_env(key) for key in FORWARDED_ENV}
    env["GITHUB_OWNER"] = p.owner
    env["GITHUB_REPO"] = p.slug

    results = []
    for key, value in env.items():
        try:
            created = p.vercel.add_env_var(project_id, key, value)
        except HostingAPIError as exc:
            return StepResult("set_env_vars", False, error=str(exc))
        results.append(f"{key}: {'set' if created else 'already set'}")
    return StepResult("set_env_vars", True, {"vars": results})


def trigger_deploy(p: Provisioning) -> StepResult:
    try:
        deployment = p.vercel.trigger_deploy(p.slug, p.owner, p.slug)
    except HostingAPIError as exc:
        return StepResult("trigger_deploy", False, error=str(exc))
    return StepResult("trigger_deploy", True, {"deploymentId": deployment.get("id"), "url": deployment.get("url")})


def _run(p: Provisioning, step, *args) -> StepResult:
    result = step(p, *args)
    p.completed.append(result)
    if result.success:
        logger.info("create-site %s: %s done", p.slug, result.step)
    return result


def _fail(p: Provisioning, message: str) -> UpstreamError:
    return UpstreamError(message, completedSteps=[s.to_dict() for s in p.completed])


def provision(p: Provisioning) -> StepResult:
    """Steps A-D. Raises UpstreamError carrying the steps so far on a fatal failure."""
    for step in (create_repo, create_project):
        result = _run(p, step)
        if not result.success:
            raise _fail(p, result.error)
    project = result

    result = _run(p, set_env_vars, project.data["projectId"])
    if not result.success:
        raise _fail(p, result.error)

    result = _run(p, trigger_deploy)
    if not result.success:
        logger.warning("Deploy trigger failed for %s (non-fatal): %s", p.slug, result.error)
    return project


@router.post("/create-site", summary="Create repository, hosting project and deploy for a client")
async def create_site(request: ClientRequest, user: AuthenticatedUser = Depends(require_user)) -> dict:
    db = store.user_client(user.access_token)
    record = await run_blocking(store.get_client_record, db, request.client_id, "id, client_name, status")
    if record.get("status") != "setup":
        raise BadRequest(f'Client is in "{record.get("status")}" status, expected "setup"')

    owner = get_env("GITHUB_OWNER")
    slug = slugify(record["client_name"])
    p = Provisioning(
        github=GitHubClient(owner, slug, get_env("GITHUB_TOKEN")),
        vercel=VercelClient(get_env("BW_VERCEL_TOKEN"), get_env("VERCEL_TEAM_ID")),
    )

    project = await run_blocking(provision, p)
    vercel_url = project.data["url"]

    fields = {"github_repo": slug, "github_owner": owner, "vercel_url": vercel_url, "status": "active"}
    try:
        await run_blocking(store.update_client_record, db, request.client_id, fields)
    except Exception as exc:
        p.completed.append(StepResult("update_client", False, error=str(exc)))
        raise _fail(p, f"Client record update failed: {exc}") from exc
    p.completed.append(StepResult("update_client", True))

    return ok(
        data={"github_repo": slug, "github_owner": owner, "vercel_url": vercel_url},
        message="Site infrastructure created successfully",
        completedSteps=[s.to_dict() for s in p.completed],
    )
