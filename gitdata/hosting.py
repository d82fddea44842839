import logging
from typing import Optional

import requests

logger = logging.getLogger(__name__)

VERCEL_API = "https://api.vercel.com"
DEFAULT_TIMEOUT = 30  # seconds
ENV_TARGETS = ["production", "preview", "development"]


class HostingAPIError(Exception):
    def __init__(self, step: str, status_code: int, body: str):
        self.step = step
        self.status_code = status_code
        self.body = body
        super().__init__(f"Vercel API error during {step} ({status_code}): {body}")


class VercelClient:
    """The handful of Vercel REST calls needed to stand up a client site."""

    def __init__(self, token: str, team_id: str, session: Optional[requests.Session] = None):
        self.team_id = team_id
        self.session = session or requests.Session()
        self.session.headers.update({"Authorization": f"Bearer {token}"})

    def _url(self, path: str) -> str:
        return f"{VERCEL_API}{path}?teamId={self.team_id}"

    def get_project(self, name: str) -> Optional[dict]:
        response = self.session.get(self._url(f"/v9/projects/{name}"), timeout=DEFAULT_TIMEOUT)
        return response.json() if response.ok else None

    def create_project(self, name: str, git_repo: str) -> dict:
        response = self.session.post(
            self._url("/v10/projects"),
            json={
                "name": name,
                "framework": "astro",
                "gitRepository": {"type": "github", "repo": git_repo},
            },
            timeout=DEFAULT_TIMEOUT,
        )
        if not response.ok:
            raise HostingAPIError("create project", response.status_code, response.text)
        return response.json()

    def add_env_var(self, project_id: str, key: str, value: str) -> bool:
        """Returns False when the variable already existed."""
        response = self.session.post(
            self._url(f"/v10/projects/{project_id}/env"),
            json={"key": key, "value": value, "type": "encrypted", "target": ENV_TARGETS},
            timeout=DEFAULT_TIMEOUT,
        )
        if response.ok:
            return True
        if response.status_code == 400 and "already" in response.text:
            return False
        raise HostingAPIError(f"set {key}", response.status_code, response.text)

    def trigger_deploy(self, name: str, org: str, repo: str, ref: str = "main") -> dict:
        response = self.session.post(
            self._url("/v13/deployments"),
            json={
                "name": name,
                "project": name,
                "gitSource": {"type": "github", "org": org, "repo": repo, "ref": ref},
            },
            timeout=DEFAULT_TIMEOUT,
        )
        if not response.ok:
            raise HostingAPIError("trigger deploy", response.status_code, response.text)
        return response.json()
