from .client import GitHubAPIError, GitHubClient
from .commit import CommitResult, FileEntry, commit_contents, commit_files
from .hosting import HostingAPIError, VercelClient

__all__ = [
    "GitHubAPIError", "GitHubClient", "CommitResult", "FileEntry",
    "commit_contents", "commit_files", "HostingAPIError", "VercelClient",
]
