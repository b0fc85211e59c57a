"""
lifecycle.py

Responsibility: Attach the publisher to the build lifecycle.

`DescriptionSetterWrapper` is the build step: it hands the host a teardown hook
for ordinary builds and an aggregator for matrix builds. Member runs of a matrix
build get a no-op teardown so that only the aggregate sets the description.

`BuildRunner` is a minimal host shim exposing explicit "per-build-end" and
"per-aggregate-end" hooks. It is what the CLI and the tests drive.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field, replace
from typing import Callable, Sequence, Tuple, Union

from description_setter.config import PublisherConfig
from description_setter.host import BuildContext
from description_setter.publisher import DescriptionPublisher, Outcome, PublishError, PublishResult

logger = logging.getLogger(__name__)


class BuildState(enum.Enum):
    IDLE = "idle"
    AWAITING_TEARDOWN = "awaiting-teardown"
    AWAITING_AGGREGATE_COMPLETION = "awaiting-aggregate-completion"
    SKIPPED = "skipped"
    PUBLISHED = "published"
    FAILED = "failed"


class Environment:
    """Per-build environment returned by `setup`; torn down after the build steps."""

    result: PublishResult | None = None

    def tear_down(self) -> bool:
        return True


class _PublishingEnvironment(Environment):
    def __init__(self, wrapper: "DescriptionSetterWrapper", ctx: BuildContext) -> None:
        self._wrapper = wrapper
        self._ctx = ctx

    def tear_down(self) -> bool:
        self.result = self._wrapper.set_project_description(self._ctx)
        self.result.raise_for_error()
        return True


class MatrixAggregator:
    """Receives member-run completions; publishes once when the whole matrix ends."""

    result: PublishResult | None = None

    def __init__(self, wrapper: "DescriptionSetterWrapper", ctx: BuildContext) -> None:
        self._wrapper = wrapper
        self.ctx = ctx
        self.completed_runs: list[BuildContext] = []

    def start_build(self) -> bool:
        return True

    def end_run(self, run: BuildContext) -> bool:
        self.completed_runs.append(run)
        return True

    def end_build(self) -> bool:
        self.result = self._wrapper.set_project_description(self.ctx)
        self.result.raise_for_error()
        return True


class DescriptionSetterWrapper:
    """Build step that sets the project description after the build."""

    def __init__(self, config: PublisherConfig, publisher: DescriptionPublisher) -> None:
        self.config = config
        self.publisher = publisher

    def setup(self, ctx: BuildContext) -> Environment:
        if ctx.matrix_run:
            return Environment()
        return _PublishingEnvironment(self, ctx)

    def create_aggregator(self, ctx: BuildContext) -> MatrixAggregator:
        return MatrixAggregator(self, ctx)

    def set_project_description(self, ctx: BuildContext) -> PublishResult:
        return self.publisher.attempt(self.config, ctx)


BuildStep = Callable[[BuildContext], bool]


@dataclass
class BuildRecord:
    ctx: BuildContext
    state: BuildState = BuildState.IDLE
    error: Exception | None = None

    @property
    def successful(self) -> bool:
        return self.state is not BuildState.FAILED


@dataclass
class MatrixRecord:
    aggregate: BuildRecord
    runs: list[BuildRecord] = field(default_factory=list)


EndHook = Tuple[Callable[[], bool], Union[Environment, MatrixAggregator]]


class BuildRunner:
    """
    Drives builds through their lifecycle for a set of build-step wrappers.

    A build step returning False or raising, or an end hook returning False or
    raising PublishError, marks the build failed. Teardown runs on every path.
    """

    def __init__(self, wrappers: Sequence[DescriptionSetterWrapper]) -> None:
        self.wrappers = list(wrappers)

    def _finish(self, record: BuildRecord, hooks: Sequence[EndHook]) -> BuildRecord:
        published = False
        for call, owner in hooks:
            try:
                ok = call()
            except PublishError as e:
                logger.error("Build %s #%s failed: %s", record.ctx.job_name, record.ctx.build_number, e)
                record.state = BuildState.FAILED
                record.error = e
                return record
            if not ok:
                record.state = BuildState.FAILED
                return record
            result = owner.result
            published = published or (result is not None and result.outcome is Outcome.PUBLISHED)
        record.state = BuildState.PUBLISHED if published else BuildState.SKIPPED
        return record

    def _run_steps(self, record: BuildRecord, steps: Sequence[BuildStep]) -> bool:
        ctx = record.ctx
        for step in steps:
            try:
                ok = step(ctx)
            except Exception as e:  # noqa: BLE001 - a raising step fails the build
                logger.error("Build step raised for %s #%s: %s", ctx.job_name, ctx.build_number, e)
                record.error = e
                return False
            if not ok:
                logger.info("Build step failed for %s #%s", ctx.job_name, ctx.build_number)
                return False
        return True

    def run_build(self, ctx: BuildContext, steps: Sequence[BuildStep] = ()) -> BuildRecord:
        """Run one build: setup, build steps, then every per-build-end hook."""
        record = BuildRecord(ctx=ctx)
        environments = [wrapper.setup(ctx) for wrapper in self.wrappers]
        if ctx.matrix_run:
            # Member runs never publish; the aggregate does.
            record.state = BuildState.SKIPPED
        else:
            record.state = BuildState.AWAITING_TEARDOWN

        steps_ok = False
        try:
            steps_ok = self._run_steps(record, steps)
        finally:
            if ctx.matrix_run:
                for env in reversed(environments):
                    env.tear_down()
            else:
                self._finish(record, [(env.tear_down, env) for env in reversed(environments)])
        if not steps_ok:
            record.state = BuildState.FAILED
        return record

    def run_matrix(
        self,
        ctx: BuildContext,
        runs: Sequence[BuildContext],
        steps: Sequence[BuildStep] = (),
    ) -> MatrixRecord:
        """Run every member run, then fire the per-aggregate-end hooks once."""
        aggregators = [wrapper.create_aggregator(ctx) for wrapper in self.wrappers]
        record = MatrixRecord(aggregate=BuildRecord(ctx=ctx, state=BuildState.AWAITING_AGGREGATE_COMPLETION))
        for aggregator in aggregators:
            aggregator.start_build()

        for run in runs:
            if not run.matrix_run:
                run = replace(run, matrix_run=True)
            record.runs.append(self.run_build(run, steps))
            for aggregator in aggregators:
                aggregator.end_run(run)

        self._finish(record.aggregate, [(agg.end_build, agg) for agg in aggregators])
        return record
