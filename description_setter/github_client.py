"""
github_client.py

Responsibility: Isolate all direct GitHub REST API interaction.

Used as a remote description sink: the published project description becomes
the repository description on GitHub.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import requests

MAX_DESCRIPTION_LENGTH = 350


class GitHubError(RuntimeError):
    pass


@dataclass(frozen=True)
class RepoInfo:
    owner: str
    name: str
    html_url: str
    description: str


def parse_repo_slug(slug: str) -> tuple[str, str]:
    """Split `owner/name` into its parts."""
    owner, sep, name = slug.strip().partition("/")
    if not sep or not owner or not name or "/" in name:
        raise GitHubError(f"Expected OWNER/NAME, got: {slug!r}")
    return owner, name


class GitHubClient:
    def __init__(self, token: str, api_base: str = "https://api.github.com") -> None:
        if not token.strip():
            raise GitHubError("GitHub token is required.")
        self._token = token
        self._api_base = api_base.rstrip("/")

    def _headers(self) -> dict[str, str]:
        return {
            "Accept": "application/vnd.github+json",
            "Authorization": f"Bearer {self._token}",
            "X-GitHub-Api-Version": "2022-11-28",
            "User-Agent": "description-setter",
        }

    def _request(self, method: str, path: str, *, json_body: dict[str, Any] | None = None) -> Any:
        url = f"{self._api_base}{path}"
        try:
            r = requests.request(method, url, headers=self._headers(), json=json_body, timeout=30)
        except requests.RequestException as e:
            raise GitHubError(f"GitHub API request failed {method} {path}: {e}") from e
        if r.status_code >= 400:
            try:
                payload = r.json()
            except ValueError:
                payload = {"message": r.text}
            raise GitHubError(f"GitHub API error {r.status_code} {method} {path}: {payload.get('message', payload)}")
        if r.status_code == 204:
            return None
        return r.json()

    @staticmethod
    def _repo_info(owner: str, name: str, data: dict[str, Any]) -> RepoInfo:
        return RepoInfo(
            owner=owner,
            name=name,
            html_url=data["html_url"],
            description=data.get("description") or "",
        )

    def get_repo(self, owner: str, name: str) -> RepoInfo | None:
        """
        Return RepoInfo if the repo exists and is accessible; otherwise None.
        """
        try:
            data = self._request("GET", f"/repos/{owner}/{name}")
        except GitHubError as e:
            msg = str(e).lower()
            if "404" in msg or "not found" in msg:
                return None
            raise
        return self._repo_info(owner, name, data)

    def update_description(self, owner: str, name: str, description: str) -> RepoInfo:
        """
        Replace the repository description.

        GitHub rejects descriptions longer than 350 characters and strips
        newlines, so the text is collapsed to a single line first.
        """
        text = " ".join(description.split())
        if len(text) > MAX_DESCRIPTION_LENGTH:
            raise GitHubError(
                f"Description is {len(text)} characters; GitHub allows at most {MAX_DESCRIPTION_LENGTH}."
            )
        data = self._request("PATCH", f"/repos/{owner}/{name}", json_body={"description": text})
        return self._repo_info(owner, name, data)
