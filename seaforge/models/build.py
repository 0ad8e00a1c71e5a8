"""Build state threaded through the stages, and the final report."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict

from seaforge.errors import BuildWarning
from seaforge.models.config import PipelineConfig, Platform
from seaforge.models.manifest import EntryPoint, ProjectManifest
from seaforge.models.stages import StageState, StageTransition


class OutputArtifact(BaseModel):
    """The final executable. Its name is derived once and never reassigned."""

    model_config = ConfigDict(frozen=True)

    path: Path

    @property
    def name(self) -> str:
        return self.path.name


class BuildState(BaseModel):
    """Immutable snapshot of everything one stage hands to the next.

    Stages never mutate a state; they return a copy with their outputs set.
    ``entry_point`` is set by the environment stage and replaced at most once,
    by the bundle stage. ``source_entry`` keeps the stage-1 value for naming.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    config: PipelineConfig
    platform: Platform | None = None
    manifest: ProjectManifest | None = None
    source_entry: EntryPoint | None = None
    entry_point: EntryPoint | None = None
    bundled: bool = False
    descriptor_path: Path | None = None
    blob_path: Path | None = None
    output: OutputArtifact | None = None
    transient_artifacts: tuple[Path, ...] = ()
    installed_tools: tuple[str, ...] = ()
    warnings: tuple[BuildWarning, ...] = ()

    @property
    def project_root(self) -> Path:
        return self.config.project_root

    def with_warning(self, warning: BuildWarning) -> BuildState:
        return self.model_copy(update={"warnings": self.warnings + (warning,)})

    def with_installed_tool(self, package: str) -> BuildState:
        if package in self.installed_tools:
            return self
        return self.model_copy(
            update={"installed_tools": self.installed_tools + (package,)}
        )


class StageResult(BaseModel):
    """What a stage's ``execute()`` returns: the next state and how it ended."""

    model_config = ConfigDict(frozen=True)

    state: BuildState
    status: StageState = StageState.PASSED
    summary: str = ""


class BuildReport(BaseModel):
    """Outcome of a successful pipeline run."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    platform: Platform
    output: OutputArtifact
    output_size_bytes: int
    descriptor_filename: str
    distributable: bool
    bundled: bool
    stage_states: dict[str, StageState]
    history: list[StageTransition]
    warnings: tuple[BuildWarning, ...] = ()
    installed_tools: tuple[str, ...] = ()
