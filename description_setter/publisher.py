"""
publisher.py

Responsibility: Turn a workspace file into the project description.

Flow for one build:
1) Skip when no description file is configured
2) Expand tokens in the configured path
3) Skip (with a console line) when the workspace or the file is missing
4) Read the file, expand tokens in its contents unless disabled
5) Hand the result to the host's description sink

Missing workspace/file is tolerated; a failed read or expansion of a file that
does exist is a build failure. The description is set from a fully read and
fully expanded string, or not at all.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass

from description_setter.config import PublisherConfig
from description_setter.host import BuildContext, Host
from description_setter.tokens import ExpansionError
from description_setter.workspace import WorkspaceReadError

logger = logging.getLogger(__name__)

MSG_SETTING_DESCRIPTION = "Setting project description from: {path}"
MSG_NO_FILE = "Project description file not found: {path}"
MSG_NO_WORKSPACE = "No workspace available, project description not set"


class Outcome(enum.Enum):
    SKIPPED = "skipped"
    PUBLISHED = "published"
    FAILED = "failed"


class SkipReason(enum.Enum):
    NO_FILE_CONFIGURED = "no-file-configured"
    NO_WORKSPACE = "no-workspace"
    FILE_NOT_FOUND = "file-not-found"


class ErrorKind(enum.Enum):
    IO = "io"
    EXPANSION = "expansion"


class PublishError(RuntimeError):
    def __init__(self, kind: ErrorKind, message: str) -> None:
        super().__init__(message)
        self.kind = kind


@dataclass(frozen=True)
class PublishResult:
    outcome: Outcome
    path: str | None = None
    description: str | None = None
    skip_reason: SkipReason | None = None
    error_kind: ErrorKind | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.outcome is not Outcome.FAILED

    def raise_for_error(self) -> None:
        if self.outcome is Outcome.FAILED:
            assert self.error_kind is not None
            raise PublishError(self.error_kind, str(self.error)) from self.error


def _skipped(reason: SkipReason, path: str | None = None) -> PublishResult:
    return PublishResult(outcome=Outcome.SKIPPED, path=path, skip_reason=reason)


def _failed(kind: ErrorKind, error: Exception, path: str | None) -> PublishResult:
    return PublishResult(outcome=Outcome.FAILED, path=path, error_kind=kind, error=error)


class DescriptionPublisher:
    """Publishes a workspace file as the project description."""

    def __init__(self, host: Host) -> None:
        self._host = host

    def attempt(self, config: PublisherConfig, ctx: BuildContext) -> PublishResult:
        """
        Run one publish and report what happened instead of raising.

        I/O and expansion failures come back as `Outcome.FAILED` results.
        """
        if not config.project_description_filename.strip():
            return _skipped(SkipReason.NO_FILE_CONFIGURED)

        # The path is always expanded; `disable_tokens` only covers contents.
        try:
            path = self._host.expand_tokens(ctx, config.project_description_filename)
        except ExpansionError as e:
            return _failed(ErrorKind.EXPANSION, e, config.project_description_filename)

        workspace = self._host.workspace_root(ctx)
        if workspace is None:
            self._host.log(ctx, MSG_NO_WORKSPACE)
            return _skipped(SkipReason.NO_WORKSPACE, path)

        try:
            found = workspace.exists(path)
        except WorkspaceReadError as e:
            return _failed(ErrorKind.IO, e, path)
        if not found:
            self._host.log(ctx, MSG_NO_FILE.format(path=path))
            return _skipped(SkipReason.FILE_NOT_FOUND, path)

        try:
            contents = workspace.read_text(path, config.charset)
        except WorkspaceReadError as e:
            return _failed(ErrorKind.IO, e, path)

        if config.disable_tokens:
            description = contents
        else:
            try:
                description = self._host.expand_tokens(ctx, contents)
            except ExpansionError as e:
                return _failed(ErrorKind.EXPANSION, e, path)

        self._host.log(ctx, MSG_SETTING_DESCRIPTION.format(path=path))
        self._host.set_description(ctx, description)
        return PublishResult(outcome=Outcome.PUBLISHED, path=path, description=description)

    def publish(self, config: PublisherConfig, ctx: BuildContext) -> bool:
        """Return True when published or skipped; raise PublishError on failure."""
        result = self.attempt(config, ctx)
        if not result.ok:
            logger.debug("Publishing description for %s failed: %s", ctx.job_name, result.error)
        result.raise_for_error()
        return True
