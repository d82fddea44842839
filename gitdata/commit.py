"""
Apply a batch of file writes to a branch as a single commit.

Both variants read the branch head, build a tree on top of the head's tree,
commit it with the head as sole parent and then move the branch. The ref is
only touched in the last step, so a failure anywhere earlier leaves the branch
where it was (possibly with orphaned blobs/trees on the GitHub side).

Calls are strictly sequential and never retried. There is no protection
against the branch moving between reading the head and updating the ref;
GitHub refuses the non-force update in that case and the error surfaces.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from .client import GitHubClient

logger = logging.getLogger(__name__)

FILE_MODE = "100644"


@dataclass(frozen=True)
class FileEntry:
    path: str
    content: str
    encoding: str = "utf-8"             # "utf-8" | "base64"


@dataclass(frozen=True)
class CommitResult:
    sha: str
    url: Optional[str]


def _finish_commit(client: GitHubClient, branch: str, head_sha: str, tree_sha: str, message: str) -> CommitResult:
    commit = client.create_commit(message, tree_sha, [head_sha])
    client.update_ref(branch, commit["sha"])
    logger.info("Committed %s to %s/%s@%s", commit["sha"][:7], client.owner, client.repo, branch)
    return CommitResult(sha=commit["sha"], url=commit.get("html_url"))


def commit_files(client: GitHubClient, files: list[FileEntry], message: str, branch: str = "main") -> CommitResult:
    """Blob variant: every file becomes an explicit blob first (supports base64 content)."""
    head_sha = client.get_ref(branch)
    base_tree = client.get_commit_tree(head_sha)

    entries = []
    for entry in files:
        blob_sha = client.create_blob(entry.content, entry.encoding)
        entries.append({"path": entry.path, "mode": FILE_MODE, "type": "blob", "sha": blob_sha})

    tree_sha = client.create_tree(base_tree, entries)
    return _finish_commit(client, branch, head_sha, tree_sha, message)


def commit_contents(client: GitHubClient, files: list[FileEntry], message: str, branch: str = "main") -> CommitResult:
    """Direct-content variant: tree entries carry the text and GitHub makes the blobs."""
    head_sha = client.get_ref(branch)
    base_tree = client.get_commit_tree(head_sha)

    entries = [
        {"path": entry.path, "mode": FILE_MODE, "type": "blob", "content": entry.content}
        for entry in files
    ]

    tree_sha = client.create_tree(base_tree, entries)
    return _finish_commit(client, branch, head_sha, tree_sha, message)
