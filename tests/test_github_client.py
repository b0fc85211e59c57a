from __future__ import annotations

from typing import Any

import pytest

from description_setter import github_client
from description_setter.github_client import GitHubClient, GitHubError, parse_repo_slug


class FakeResponse:
    def __init__(self, status_code: int, payload: Any = None, text: str = "") -> None:
        self.status_code = status_code
        self._payload = payload
        self.text = text

    def json(self) -> Any:
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


def _install(monkeypatch: pytest.MonkeyPatch, response: FakeResponse) -> list[dict[str, Any]]:
    sent: list[dict[str, Any]] = []

    def fake_request(method: str, url: str, **kwargs: Any) -> FakeResponse:
        sent.append({"method": method, "url": url, **kwargs})
        return response

    monkeypatch.setattr(github_client.requests, "request", fake_request)
    return sent


def test_token_required() -> None:
    with pytest.raises(GitHubError):
        GitHubClient("  ")


def test_parse_repo_slug() -> None:
    assert parse_repo_slug("acme/app") == ("acme", "app")
    for bad in ("acme", "/app", "acme/", "a/b/c"):
        with pytest.raises(GitHubError):
            parse_repo_slug(bad)


def test_update_description_sends_patch(monkeypatch: pytest.MonkeyPatch) -> None:
    sent = _install(monkeypatch, FakeResponse(200, {"html_url": "https://github.com/acme/app", "description": "Build 1 ok"}))

    repo = GitHubClient("tok").update_description("acme", "app", "Build 1\n ok")

    assert repo.description == "Build 1 ok"
    assert sent[0]["method"] == "PATCH"
    assert sent[0]["url"] == "https://api.github.com/repos/acme/app"
    assert sent[0]["json"] == {"description": "Build 1 ok"}
    assert sent[0]["headers"]["Authorization"] == "Bearer tok"


def test_update_description_rejects_long_text(monkeypatch: pytest.MonkeyPatch) -> None:
    sent = _install(monkeypatch, FakeResponse(200, {}))
    with pytest.raises(GitHubError, match="at most 350"):
        GitHubClient("tok").update_description("acme", "app", "x" * 351)
    assert sent == []


def test_get_repo_missing_returns_none(monkeypatch: pytest.MonkeyPatch) -> None:
    _install(monkeypatch, FakeResponse(404, {"message": "Not Found"}))
    assert GitHubClient("tok").get_repo("acme", "nope") is None


def test_api_error_is_raised(monkeypatch: pytest.MonkeyPatch) -> None:
    _install(monkeypatch, FakeResponse(500, None, text="boom"))
    with pytest.raises(GitHubError, match="500"):
        GitHubClient("tok").get_repo("acme", "app")
