"""
github_client.py

Responsibility: read-only GitHub REST lookups for formula source verification.

Only this module builds API endpoints, sends requests to api.github.com and
decodes its error payloads. A 404 is an answer ("does not exist"), not an error.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

import requests

from git_wt import GitWtError, __version__

_GITHUB_URL = re.compile(
    r"""^(?:https?://(?:[^@/]+@)?github\.com/|git@github\.com:|ssh://git@github\.com/)
        (?P<owner>[A-Za-z0-9_.-]+)/(?P<name>[A-Za-z0-9_.-]+?)(?:\.git)?/?$""",
    re.VERBOSE,
)


class GitHubError(GitWtError):
    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


@dataclass(frozen=True)
class RepoInfo:
    owner: str
    name: str
    html_url: str
    clone_url: str
    default_branch: str


@dataclass(frozen=True)
class BranchInfo:
    name: str
    sha: str


def parse_github_url(url: str) -> tuple[str, str] | None:
    """
    Return (owner, name) for a github.com clone URL, or None for other hosts.
    """
    m = _GITHUB_URL.match(url.strip())
    if m is None:
        return None
    return m.group("owner"), m.group("name")


class GitHubClient:
    def __init__(self, token: str | None = None, api_base: str = "https://api.github.com") -> None:
        self._token = (token or "").strip() or None
        self._api_base = api_base.rstrip("/")

    def _headers(self) -> dict[str, str]:
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
            "User-Agent": f"git-wt/{__version__}",
        }
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    def _get(self, path: str) -> dict[str, Any]:
        method = "GET"
        try:
            r = requests.request(method, self._api_base + path, headers=self._headers(), timeout=30)
        except requests.RequestException as e:
            raise GitHubError(f"GitHub API request failed {method} {path}: {e}") from e
        if r.status_code >= 400:
            try:
                payload = r.json()
            except ValueError:
                payload = {"message": r.text}
            message = payload.get("message", payload) if isinstance(payload, dict) else payload
            raise GitHubError(f"GitHub API error {r.status_code} {method} {path}: {message}", r.status_code)
        return r.json()

    def _get_or_none(self, path: str) -> dict[str, Any] | None:
        try:
            return self._get(path)
        except GitHubError as e:
            if e.status_code == 404:
                return None
            raise

    def get_repo(self, owner: str, name: str) -> RepoInfo | None:
        """
        Return RepoInfo if the repo exists and is accessible; otherwise None.
        """
        data = self._get_or_none(f"/repos/{owner}/{name}")
        if data is None:
            return None
        return RepoInfo(
            owner=owner,
            name=name,
            html_url=data["html_url"],
            clone_url=data["clone_url"],
            default_branch=data.get("default_branch") or "main",
        )

    def get_branch(self, owner: str, name: str, branch: str) -> BranchInfo | None:
        """
        Return the branch head if the branch exists; otherwise None.
        """
        data = self._get_or_none(f"/repos/{owner}/{name}/branches/{branch}")
        if data is None:
            return None
        return BranchInfo(name=data.get("name") or branch, sha=(data.get("commit") or {}).get("sha", ""))
