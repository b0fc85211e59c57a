"""
cli.py

Responsibility: CLI entrypoint for description-setter.

High-level flow (single command `publish`):
1) Load the build-step config (YAML file and/or flags) -> `PublisherConfig`
2) Build a `BuildContext` for the workspace (a matrix of them with --matrix-axis)
3) Run the build through `BuildRunner`, which publishes at teardown/aggregation
4) Emit the description: stdout, --output file, and/or the GitHub repo description
"""

from __future__ import annotations

import argparse
import itertools
import logging
import os
import sys
from dataclasses import replace
from pathlib import Path

from description_setter.config import ConfigurationError, PublisherConfig, config_from_mapping, load_config
from description_setter.github_client import GitHubClient, GitHubError, parse_repo_slug
from description_setter.host import BuildContext, LocalHost, Project
from description_setter.lifecycle import BuildRecord, BuildRunner, BuildState, DescriptionSetterWrapper
from description_setter.publisher import DescriptionPublisher
from description_setter.workspace import Workspace

logger = logging.getLogger(__name__)


class CLIError(RuntimeError):
    pass


def _parse_pairs(raw: list[str], flag: str) -> dict[str, str]:
    out: dict[str, str] = {}
    for item in raw:
        key, sep, value = item.partition("=")
        if not sep or not key.strip():
            raise CLIError(f"{flag} expects KEY=VALUE, got: {item!r}")
        out[key.strip()] = value
    return out


def _build_config(args: argparse.Namespace) -> PublisherConfig:
    base = load_config(args.config) if args.config else PublisherConfig()
    data = {
        "charset": args.charset or base.charset,
        "projectDescriptionFilename": base.project_description_filename if args.file is None else args.file,
        "disableTokens": base.disable_tokens if args.disable_tokens is None else bool(args.disable_tokens),
    }
    return config_from_mapping(data)


def _matrix_runs(ctx: BuildContext, axes: dict[str, str]) -> list[BuildContext]:
    names = sorted(axes)
    values = [[v.strip() for v in axes[n].split(",") if v.strip()] for n in names]
    runs = []
    for combo in itertools.product(*values):
        variables = {**ctx.variables, **dict(zip(names, combo))}
        runs.append(replace(ctx, variables=variables, matrix_run=True))
    return runs


def _emit(description: str, args: argparse.Namespace) -> None:
    if args.output:
        try:
            Path(args.output).write_text(description, encoding="utf-8")
        except OSError as e:
            raise CLIError(f"Cannot write {args.output}: {e}") from e
    if args.github_repo:
        token = args.github_token or os.environ.get("GITHUB_TOKEN") or ""
        if not token:
            raise CLIError("GitHub token is required (use --github-token or set GITHUB_TOKEN)")
        owner, name = parse_repo_slug(args.github_repo)
        gh = GitHubClient(token)
        if gh.get_repo(owner, name) is None:
            raise CLIError(f"GitHub repository not found: {owner}/{name}")
        repo = gh.update_description(owner, name, description)
        logger.info("Updated description of %s", repo.html_url)
    if not args.output and not args.github_repo:
        sys.stdout.write(description)
        if not description.endswith("\n"):
            sys.stdout.write("\n")


def publish_cmd(args: argparse.Namespace) -> int:
    config = _build_config(args)
    workspace_dir = Path(args.workspace).resolve()
    # A missing directory stands for a workspace the build node no longer provides.
    workspace = Workspace(workspace_dir) if workspace_dir.is_dir() else None

    project = Project(name=args.job_name or workspace_dir.name)
    ctx = BuildContext(
        project=project,
        build_number=args.build_number,
        workspace=workspace,
        variables=_parse_pairs(args.var, "--var"),
    )

    wrapper = DescriptionSetterWrapper(config, DescriptionPublisher(LocalHost()))
    runner = BuildRunner([wrapper])

    axes = _parse_pairs(args.matrix_axis, "--matrix-axis")
    record: BuildRecord
    if axes:
        record = runner.run_matrix(ctx, _matrix_runs(ctx, axes)).aggregate
    else:
        record = runner.run_build(ctx)

    if record.state is BuildState.FAILED:
        print(f"Build failed: {record.error}", file=sys.stderr)
        return 1
    if record.state is BuildState.PUBLISHED:
        _emit(project.description, args)
    return 0


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="description-setter",
        description="Set a project description from a file in the build workspace",
    )
    p.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = p.add_subparsers(dest="command", required=True)

    b = sub.add_parser("publish", help="Publish the workspace description file as the project description")
    b.add_argument("workspace", help="Build workspace directory")
    b.add_argument("--config", default=None, help="YAML build-step config (charset, projectDescriptionFilename, disableTokens)")
    b.add_argument("--file", default=None, help="Description file relative to the workspace (overrides config)")
    b.add_argument("--charset", default=None, help="Encoding of the description file (overrides config)")
    b.add_argument("--disable-tokens", dest="disable_tokens", action="store_true", default=None, help="Use file contents verbatim")
    b.add_argument("--enable-tokens", dest="disable_tokens", action="store_false", default=None, help="Expand ${TOKEN} markers in contents")

    b.add_argument("--job-name", default=None, help="Job name (default: workspace directory name)")
    b.add_argument("--build-number", type=int, default=1, help="Build number (default: 1)")
    b.add_argument("--var", action="append", default=[], help="Build variable KEY=VALUE (repeatable)")
    b.add_argument("--matrix-axis", action="append", default=[], help="Matrix axis NAME=V1,V2 (repeatable)")

    b.add_argument("--output", default=None, help="Write the description to this file")
    b.add_argument("--github-repo", default=None, help="Also set it as the description of OWNER/NAME on GitHub")
    b.add_argument("--github-token", default=None, help="GitHub token (or set env GITHUB_TOKEN)")

    b.set_defaults(func=publish_cmd)
    return p


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO, format="%(message)s")
    try:
        return int(args.func(args))
    except (CLIError, ConfigurationError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 2
    except GitHubError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
