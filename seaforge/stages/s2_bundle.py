"""Stage 2: Bundle.

Collapses the entry point and its ``node_modules`` dependencies into a single
file with esbuild, because the SEA blob can only embed one script.

The stage is a no-op (SKIPPED) when bundling is disabled by the caller or when
the project has no dependency tree; in both cases no process is started and
no tool installation is checked.
"""

from __future__ import annotations

import logging

from seaforge.config import BuildSettings
from seaforge.core.toolchain import NodeToolchain
from seaforge.core.tool_runner import ToolRunner
from seaforge.errors import BundleError
from seaforge.models.build import BuildState, StageResult
from seaforge.models.manifest import EntryPoint
from seaforge.models.stages import StageState
from seaforge.stages.base import BaseStage

logger = logging.getLogger(__name__)


class BundleStage(BaseStage):
    """Stage 2: optional dependency bundling."""

    def __init__(
        self,
        settings: BuildSettings,
        runner: ToolRunner,
        toolchain: NodeToolchain,
    ) -> None:
        self._settings = settings
        self._runner = runner
        self._toolchain = toolchain

    @property
    def stage_id(self) -> str:
        return "s2_bundle"

    @property
    def display_name(self) -> str:
        return "Bundle"

    def execute(self, state: BuildState) -> StageResult:
        if state.config.skip_bundling:
            return StageResult(
                state=state, status=StageState.SKIPPED, summary="disabled (--no-bundle)"
            )

        if not self._toolchain.dependency_dir.is_dir():
            return StageResult(
                state=state,
                status=StageState.SKIPPED,
                summary=f"no {self._settings.dependency_dir} directory",
            )

        entry = self.require(state.entry_point, "an entry point")

        package = self._settings.bundler_package
        if self._toolchain.ensure(package):
            state = state.with_installed_tool(package)

        bundle_path = state.project_root / self._settings.bundle_filename
        result = self._runner.run(
            self._toolchain.npx(
                package,
                entry.relative,
                "--bundle",
                "--platform=node",
                f"--outfile={self._settings.bundle_filename}",
                description="bundle dependencies",
            )
        )
        if not result.ok:
            raise BundleError(
                f"{package} failed to bundle {entry.relative} (exit {result.exit_code})",
                tool_result=result,
            )

        bundled = EntryPoint.from_path(state.project_root, bundle_path)
        return StageResult(
            state=state.model_copy(
                update={
                    "entry_point": bundled,
                    "bundled": True,
                    "transient_artifacts": state.transient_artifacts + (bundle_path,),
                }
            ),
            summary=f"{entry.relative} -> {bundled.relative}",
        )
