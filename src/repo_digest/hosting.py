"""Optional repository metadata from the GitHub REST API.

Used only to fill in a description or default branch the working copy
could not provide.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

import httpx

from .config import HTTP_TIMEOUT

GITHUB_API_URL = "https://api.github.com"

_GITHUB_RE = re.compile(r"(?:https?://|ssh://git@|git@)?github\.com[/:]([^/\s]+)/([^/\s#?]+?)(?:\.git)?/?$")


class HostingError(Exception):
    """Error talking to the hosting provider."""


@dataclass(frozen=True)
class RemoteMetadata:
    description: str | None = None
    default_branch: str | None = None


def parse_github_url(url: str) -> tuple[str, str] | None:
    """Return (owner, repo) for a GitHub URL, or None for anything else."""
    match = _GITHUB_RE.match(url.strip())
    if not match:
        return None
    return match.group(1), match.group(2)


class GitHubClient:
    """Minimal client for the repository endpoint."""

    def __init__(self, token: str | None = None, base_url: str = GITHUB_API_URL):
        self.base_url = base_url.rstrip("/")
        headers = {"Accept": "application/vnd.github+json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._client = httpx.Client(timeout=HTTP_TIMEOUT, headers=headers)

    def fetch_repository(self, owner: str, repo: str) -> RemoteMetadata:
        try:
            resp = self._client.get(f"{self.base_url}/repos/{owner}/{repo}")
        except httpx.TimeoutException:
            raise HostingError(f"GitHub request timed out after {HTTP_TIMEOUT}s")
        except httpx.HTTPError as e:
            raise HostingError(f"GitHub request failed: {e}")

        if resp.status_code != 200:
            raise HostingError(f"GitHub returned {resp.status_code}: {resp.text[:200]}")
        try:
            data = resp.json()
        except ValueError:
            raise HostingError("GitHub returned invalid JSON")
        return RemoteMetadata(
            description=data.get("description") or None,
            default_branch=data.get("default_branch") or None,
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> GitHubClient:
        return self

    def __exit__(self, *exc) -> None:
        self.close()
