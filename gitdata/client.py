import logging
from typing import Optional

import requests

logger = logging.getLogger(__name__)

GITHUB_API = "https://api.github.com"
DEFAULT_TIMEOUT = 30  # seconds


class GitHubAPIError(Exception):
    """A GitHub call answered with a non-2xx status."""

    def __init__(self, step: str, status_code: int, body: str):
        self.step = step
        self.status_code = status_code
        self.body = body
        super().__init__(f"GitHub API error during {step} ({status_code}): {body}")


class GitHubClient:
    """
    Minimal client for one repository: the contents API, the Git Data API
    (blobs, trees, commits, refs) and repository generation from a template.
    """

    def __init__(self, owner: str, repo: str, token: str, session: Optional[requests.Session] = None):
        self.owner = owner
        self.repo = repo
        self.session = session or requests.Session()
        self.session.headers.update({
            "Authorization": f"Bearer {token}",
            "Accept": "application/vnd.github+json",
        })

    @property
    def repo_url(self) -> str:
        return f"{GITHUB_API}/repos/{self.owner}/{self.repo}"

    def _request(self, step: str, method: str, url: str, **kwargs) -> requests.Response:
        kwargs.setdefault("timeout", DEFAULT_TIMEOUT)
        response = self.session.request(method, url, **kwargs)
        if not response.ok:
            logger.warning("GitHub %s %s -> %d", method, url, response.status_code)
            raise GitHubAPIError(step, response.status_code, response.text)
        return response

    # --- contents ---

    def get_file(self, path: str) -> str:
        """Raw text of a file on the default branch."""
        response = self._request(
            f"fetch {path}", "GET", f"{self.repo_url}/contents/{path}",
            headers={"Accept": "application/vnd.github.v3.raw"},
        )
        return response.text

    # --- git data ---

    def get_ref(self, branch: str) -> str:
        data = self._request("read ref", "GET", f"{self.repo_url}/git/ref/heads/{branch}").json()
        return data["object"]["sha"]

    def get_commit_tree(self, commit_sha: str) -> str:
        data = self._request("read commit", "GET", f"{self.repo_url}/git/commits/{commit_sha}").json()
        return data["tree"]["sha"]

    def create_blob(self, content: str, encoding: str = "utf-8") -> str:
        data = self._request(
            "create blob", "POST", f"{self.repo_url}/git/blobs",
            json={"content": content, "encoding": encoding},
        ).json()
        return data["sha"]

    def create_tree(self, base_tree: str, entries: list[dict]) -> str:
        data = self._request(
            "create tree", "POST", f"{self.repo_url}/git/trees",
            json={"base_tree": base_tree, "tree": entries},
        ).json()
        return data["sha"]

    def create_commit(self, message: str, tree_sha: str, parents: list[str]) -> dict:
        return self._request(
            "create commit", "POST", f"{self.repo_url}/git/commits",
            json={"message": message, "tree": tree_sha, "parents": parents},
        ).json()

    def update_ref(self, branch: str, commit_sha: str) -> None:
        # force=False: GitHub rejects the update if the branch is no longer an ancestor
        self._request(
            "update ref", "PATCH", f"{self.repo_url}/git/refs/heads/{branch}",
            json={"sha": commit_sha, "force": False},
        )

    # --- repositories ---

    def repo_exists(self) -> bool:
        response = self.session.get(self.repo_url, timeout=DEFAULT_TIMEOUT)
        return response.ok

    def generate_from_template(self, template_repo: str, description: str, private: bool = True) -> dict:
        """Create self.repo under self.owner from owner/template_repo."""
        return self._request(
            "create repository", "POST", f"{GITHUB_API}/repos/{self.owner}/{template_repo}/generate",
            json={
                "owner": self.owner,
                "name": self.repo,
                "description": description,
                "private": private,
                "include_all_branches": False,
            },
        ).json()
