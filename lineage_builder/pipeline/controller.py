"""Build pipeline controller.

Runs the stages strictly in order:

    preflight -> setup -> sync -> clean repos -> clone -> build -> report

The first failed stage halts the run. Nothing is retried and nothing
already done is rolled back. Timing starts after the user confirms and
stops once the build stage finishes, or at the failing stage.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from pathlib import Path

from lineage_builder.pipeline import stages
from lineage_builder.pipeline.models import (
    ElapsedTime,
    PipelineResult,
    RunConfig,
    StageResult,
)
from lineage_builder.tools.adapters import ToolAdapter
from lineage_builder.types import ArtifactInfo

logger = logging.getLogger(__name__)

Confirm = Callable[[str], bool]
Clock = Callable[[], float]

CONFIRM_PROMPT = "Continue with build?"


class BuildPipeline:
    """Sequences the build stages for one RunConfig.

    Args:
        config: Immutable run configuration.
        adapter: External tool adapter.
        confirm: Yes/no prompt used for the start gate and the disk-space
            override.
        show_summary: Called with the config before the start gate.
        clock: Monotonic clock, injectable for tests.
    """

    def __init__(
        self,
        config: RunConfig,
        adapter: ToolAdapter,
        confirm: Confirm,
        show_summary: Callable[[RunConfig], None] | None = None,
        clock: Clock = time.monotonic,
    ) -> None:
        self.config = config
        self.adapter = adapter
        self.confirm = confirm
        self.show_summary = show_summary
        self.clock = clock

    def run(self) -> PipelineResult:
        """Run the pipeline.

        Returns:
            PipelineResult; ``cancelled`` is set if the user declined.
        """
        if self.show_summary is not None:
            self.show_summary(self.config)
        if not self.confirm(CONFIRM_PROMPT):
            logger.info("Build cancelled by user")
            return PipelineResult(cancelled=True)

        result = PipelineResult()
        started = self.clock()
        try:
            self._run_stages(result)
        finally:
            result.elapsed = ElapsedTime.from_seconds(self.clock() - started)

        if result.success:
            report = stages.report_artifact(self.config)
            result.stages.append(report)
            artifact = report.details.get("artifact")
            if isinstance(artifact, Path):
                result.artifact = artifact
            info = report.details.get("info")
            if isinstance(info, ArtifactInfo):
                result.artifact_info = info
            self._log_outcome(report)
        return result

    def _run_stages(self, result: PipelineResult) -> None:
        config = self.config
        steps: list[Callable[[], StageResult | None]] = [
            lambda: stages.run_preflight(config, self.confirm),
            lambda: stages.setup_build_root(config),
            self._check_skip_clone,
            lambda: stages.sync_sources(config, self.adapter),
            lambda: stages.clean_repositories(config),
            lambda: stages.clone_repositories(config, self.adapter),
            lambda: stages.build_rom(config, self.adapter),
        ]
        for step in steps:
            outcome = step()
            if outcome is None:
                continue
            result.stages.append(outcome)
            self._log_outcome(outcome)
            if outcome.failed:
                return

    def _check_skip_clone(self) -> StageResult | None:
        """Fail before syncing if cloning is skipped and no device tree exists."""
        if not self.config.skip_clone:
            return None
        return stages.verify_device_tree(self.config)

    @staticmethod
    def _log_outcome(outcome: StageResult) -> None:
        if outcome.failed:
            logger.error("[%s] %s", outcome.stage.value, outcome.message)
        elif outcome.message:
            logger.info("[%s] %s", outcome.stage.value, outcome.message)


__all__ = ["CONFIRM_PROMPT", "BuildPipeline"]
