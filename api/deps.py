import asyncio
import functools
from typing import Optional

from fastapi import Header

from generation.llm import ChatModel
from gitdata.client import GitHubClient
from . import store
from .config import APP_URL, LLM_MODEL, get_env
from .errors import BadRequest, Unauthorized
from .store import AuthenticatedUser


async def run_blocking(func, *args, **kwargs):
    """Run a blocking vendor call (requests / SDK) in the default executor."""
    loop = asyncio.get_event_loop()
    return await loop.run_in_executor(None, functools.partial(func, *args, **kwargs))


def bearer_token(authorization: Optional[str]) -> str:
    if not authorization or not authorization.startswith("Bearer "):
        raise Unauthorized("Missing authorization token")
    token = authorization[len("Bearer "):].strip()
    if not token:
        raise Unauthorized("Missing authorization token")
    return token


async def require_user(authorization: Optional[str] = Header(None)) -> AuthenticatedUser:
    token = bearer_token(authorization)
    user = await run_blocking(store.get_user, token)
    if user is None:
        raise Unauthorized("Invalid or expired token")
    return user


def chat_model(title: str = "Site Builder") -> ChatModel:
    return ChatModel(get_env("OPENROUTER_API_KEY"), model=LLM_MODEL, title=title, referer=APP_URL)


def github_client(owner: str, repo: str) -> GitHubClient:
    return GitHubClient(owner, repo, get_env("GITHUB_TOKEN"))


def repo_coordinates(record: dict) -> tuple[str, str]:
    """(owner, repo) for a client record, from its columns or its site_config."""
    site_config = record.get("site_config") or {}
    owner = record.get("github_owner") or site_config.get("github_owner")
    repo = record.get("github_repo") or site_config.get("github_repo")
    if not owner or not repo:
        raise BadRequest("Client is missing github_owner or github_repo in site_config")
    return owner, repo
