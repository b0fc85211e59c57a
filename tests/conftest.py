"""Shared fixtures and helpers for the test suite."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from description_setter.host import BuildContext, LocalHost, Project
from description_setter.workspace import Workspace


class RecordingHost(LocalHost):
    """LocalHost that records every call the publisher makes."""

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.expanded: list[str] = []
        self.workspace_lookups = 0
        self.messages: list[str] = []
        self.descriptions: list[str] = []

    def expand_tokens(self, ctx: BuildContext, template: str) -> str:
        self.expanded.append(template)
        return super().expand_tokens(ctx, template)

    def workspace_root(self, ctx: BuildContext) -> Workspace | None:
        self.workspace_lookups += 1
        return super().workspace_root(ctx)

    def log(self, ctx: BuildContext, message: str) -> None:
        self.messages.append(message)
        super().log(ctx, message)

    def set_description(self, ctx: BuildContext, description: str) -> None:
        self.descriptions.append(description)
        super().set_description(ctx, description)


@pytest.fixture()
def workspace_dir(tmp_path: Path) -> Path:
    path = tmp_path / "workspace"
    path.mkdir()
    return path


@pytest.fixture()
def host() -> RecordingHost:
    return RecordingHost()


def make_ctx(
    workspace_dir: Path | None,
    *,
    build_number: int = 42,
    variables: dict[str, Any] | None = None,
    matrix_run: bool = False,
    name: str = "demo-job",
) -> BuildContext:
    return BuildContext(
        project=Project(name=name, description="original"),
        build_number=build_number,
        workspace=Workspace(workspace_dir) if workspace_dir is not None else None,
        variables=variables or {},
        environ={"HOME": "/home/ci"},
        matrix_run=matrix_run,
    )
