"""Pipeline orchestrator: the central coordinator for a Seaforge build.

The orchestrator wires the stages, the stage machine, the tool runner and the
Node toolchain into one sequential, fail-fast run:

    s1_environment -> s2_bundle -> s3_blob -> s4_compose -> s5_finish

Each stage receives the previous stage's ``BuildState`` and returns the next.
The first fatal error marks its stage FAILED, blocks everything downstream,
and propagates to the caller. Side effects already committed are not rolled
back.
"""

from __future__ import annotations

import logging

from seaforge.config import BuildSettings
from seaforge.core.stage_machine import StageMachine
from seaforge.core.tool_runner import SubprocessToolRunner, ToolRunner
from seaforge.core.toolchain import NodeToolchain
from seaforge.errors import EntryPointMissingError
from seaforge.models.build import BuildReport, BuildState
from seaforge.models.config import PipelineConfig
from seaforge.models.stages import DEFAULT_STAGE_DEFINITIONS, StageState
from seaforge.stages import (
    BaseStage,
    BlobStage,
    BundleStage,
    ComposeStage,
    EnvironmentStage,
    FinishStage,
)
from seaforge.stages.base import StageExecutionError
from seaforge.stages.s4_compose import PreInjectHook

logger = logging.getLogger(__name__)

# Stages that require the current entry point to exist on disk before they run.
_ENTRY_GUARDED_STAGES: frozenset[str] = frozenset({"s2_bundle", "s3_blob"})


class BuildOrchestrator:
    """Runs the five build stages for one project.

    Parameters
    ----------
    config:
        The immutable per-invocation pipeline configuration.
    settings:
        Tooling settings. Loaded from the environment if not provided.
    runner:
        External process runner. Defaults to ``SubprocessToolRunner``.
    """

    def __init__(
        self,
        config: PipelineConfig,
        *,
        settings: BuildSettings | None = None,
        runner: ToolRunner | None = None,
    ) -> None:
        self.config = config
        self.settings = settings or BuildSettings()
        self.runner: ToolRunner = runner or SubprocessToolRunner()
        self.toolchain = NodeToolchain(config.project_root, self.runner, self.settings)
        self.stage_machine = StageMachine(DEFAULT_STAGE_DEFINITIONS)

        finish = FinishStage(self.settings, self.runner, self.toolchain)
        self.stages: list[BaseStage] = [
            EnvironmentStage(self.settings),
            BundleStage(self.settings, self.runner, self.toolchain),
            BlobStage(self.settings, self.runner, self.toolchain),
            ComposeStage(
                self.settings,
                self.runner,
                self.toolchain,
                before_inject=self._checkpoint(finish.prepare_binary),
            ),
            finish,
        ]

        # Last state produced by a stage that finished; kept on failure too.
        self.state = BuildState(config=config)

    # ------------------------------------------------------------------
    # Run lifecycle
    # ------------------------------------------------------------------

    def run(self) -> BuildReport:
        """Execute every stage in order and return the build report."""
        logger.info("Building SEA executable in %s", self.config.project_root)
        state = self.state
        for stage in self.stages:
            state = self.execute_stage(stage, state)
        return self._report(state)

    def execute_stage(self, stage: BaseStage, state: BuildState) -> BuildState:
        """Run one stage through the stage machine.

        Lifecycle:
        1. Transition to RUNNING (prerequisites checked automatically)
        2. Re-check the entry point invariant where required
        3. Run the stage
        4. Transition to PASSED/SKIPPED, or FAILED and re-raise
        """
        self.stage_machine.transition(stage.stage_id, StageState.RUNNING)

        try:
            if stage.stage_id in _ENTRY_GUARDED_STAGES:
                _require_entry_point(state)
            result = stage.run_stage(state)
        except Exception as exc:
            self.stage_machine.transition(
                stage.stage_id, StageState.FAILED, reason=str(exc)
            )
            raise

        self.stage_machine.transition(
            stage.stage_id, result.status, reason=result.summary or None
        )
        self.state = result.state
        return result.state

    def _checkpoint(self, hook: PreInjectHook) -> PreInjectHook:
        """Wrap a mid-stage hook so its state survives a later failure in that stage."""

        def wrapped(state: BuildState) -> BuildState:
            self.state = hook(state)
            return self.state

        return wrapped

    # ------------------------------------------------------------------
    # Query methods
    # ------------------------------------------------------------------

    def get_states(self) -> dict[str, StageState]:
        return self.stage_machine.get_all_states()

    def get_stage_state(self, stage_id: str) -> StageState:
        return self.stage_machine.get_state(stage_id)

    def is_distributable(self) -> bool:
        """True only once both the compose and finish stages passed."""
        return (
            self.get_stage_state("s4_compose") == StageState.PASSED
            and self.get_stage_state("s5_finish") == StageState.PASSED
        )

    def _report(self, state: BuildState) -> BuildReport:
        platform, output = state.platform, state.output
        if platform is None or output is None:
            raise StageExecutionError("Pipeline finished without a platform or output binary")
        return BuildReport(
            platform=platform,
            output=output,
            output_size_bytes=output.path.stat().st_size,
            descriptor_filename=self.settings.descriptor_filename,
            distributable=self.is_distributable(),
            bundled=state.bundled,
            stage_states=self.get_states(),
            history=self.stage_machine.history,
            warnings=state.warnings,
            installed_tools=state.installed_tools,
        )


def _require_entry_point(state: BuildState) -> None:
    entry = state.entry_point
    if entry is None or not entry.exists():
        where = entry.relative if entry else "<unresolved>"
        raise EntryPointMissingError(f"Entry point is not a file: {where}")
