"""
host.py

Responsibility: The build-host collaborators the publisher talks to.

A real orchestration platform owns builds, workspaces, token expansion and the
console log. `LocalHost` stands in for it in-process so the publisher can be
driven by the CLI and by tests; anything implementing `Host` can replace it.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Protocol

from description_setter.tokens import TokenExpander
from description_setter.workspace import Workspace

CONSOLE_LOGGER = "description_setter.console"


@dataclass
class Project:
    """A configured job whose description the publisher sets."""

    name: str
    description: str = ""


@dataclass(frozen=True)
class BuildContext:
    """Per-build inputs, owned by the host and read-only to the publisher."""

    project: Project
    build_number: int = 1
    workspace: Workspace | None = None
    variables: Mapping[str, Any] = field(default_factory=dict)
    environ: Mapping[str, str] = field(default_factory=lambda: dict(os.environ))
    console: logging.Logger = field(default_factory=lambda: logging.getLogger(CONSOLE_LOGGER))
    matrix_run: bool = False

    @property
    def job_name(self) -> str:
        return self.project.name

    def token_values(self) -> dict[str, Any]:
        values: dict[str, Any] = {
            "BUILD_NUMBER": str(self.build_number),
            "BUILD_ID": str(self.build_number),
            "JOB_NAME": self.job_name,
            "env": dict(self.environ),
        }
        if self.workspace is not None:
            values["WORKSPACE"] = str(self.workspace.root)
        values.update(self.variables)
        return values


class Host(Protocol):
    """Services the publisher consumes from the build host."""

    def expand_tokens(self, ctx: BuildContext, template: str) -> str:
        """Expand token markers; raise ExpansionError on failure."""

    def workspace_root(self, ctx: BuildContext) -> Workspace | None:
        """Return the build workspace, or None when it is unavailable."""

    def log(self, ctx: BuildContext, message: str) -> None:
        """Write a line to the build console."""

    def set_description(self, ctx: BuildContext, description: str) -> None:
        """Publish the final description."""


DescriptionSink = Callable[[BuildContext, str], None]


def project_sink(ctx: BuildContext, description: str) -> None:
    ctx.project.description = description


class LocalHost:
    """In-process host: Jinja2 token expansion, local workspaces, stdlib logging."""

    def __init__(
        self,
        sink: DescriptionSink | None = None,
        expander: TokenExpander | None = None,
    ) -> None:
        self._sink = sink or project_sink
        self._expander = expander or TokenExpander()

    def expand_tokens(self, ctx: BuildContext, template: str) -> str:
        return self._expander.expand(ctx, template)

    def workspace_root(self, ctx: BuildContext) -> Workspace | None:
        return ctx.workspace

    def log(self, ctx: BuildContext, message: str) -> None:
        ctx.console.info(message)

    def set_description(self, ctx: BuildContext, description: str) -> None:
        self._sink(ctx, description)
