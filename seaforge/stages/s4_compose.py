"""Stage 4: Compose Binary.

Copies the Node runtime binary to the output name and injects the SEA blob
into it with postject.

Ordering inside the stage:
    derive output name -> copy runtime -> pre-injection hook -> inject

The pre-injection hook is supplied by the orchestrator; on macOS it strips
the copied binary's code signature. A failed copy or injection is fatal and
the partially built binary is left on disk for inspection.
"""

from __future__ import annotations

import logging
import shutil
from collections.abc import Callable
from pathlib import Path

from seaforge.config import BuildSettings
from seaforge.core.platforms import (
    SEA_BLOB_RESOURCE,
    SEA_SENTINEL_FUSE,
    PlatformCapabilities,
    capabilities_for,
)
from seaforge.core.toolchain import NodeToolchain
from seaforge.core.tool_runner import ToolRunner
from seaforge.errors import BinaryCopyError, BlobInjectionError
from seaforge.models.build import BuildState, OutputArtifact, StageResult
from seaforge.stages.base import BaseStage

logger = logging.getLogger(__name__)

PreInjectHook = Callable[[BuildState], BuildState]


def output_filename(
    base: str,
    capabilities: PlatformCapabilities,
    *,
    version: str | None = None,
    include_version: bool = False,
) -> str:
    """``{base}-{version}{suffix}`` or ``{base}{suffix}``.

    The version goes before the executable suffix, and is only used when
    requested and declared.
    """
    if include_version and version:
        return f"{base}-{version}{capabilities.exec_suffix}"
    return f"{base}{capabilities.exec_suffix}"


class ComposeStage(BaseStage):
    """Stage 4: runtime copy + blob injection."""

    def __init__(
        self,
        settings: BuildSettings,
        runner: ToolRunner,
        toolchain: NodeToolchain,
        before_inject: PreInjectHook | None = None,
    ) -> None:
        self._settings = settings
        self._runner = runner
        self._toolchain = toolchain
        self._before_inject = before_inject

    @property
    def stage_id(self) -> str:
        return "s4_compose"

    @property
    def display_name(self) -> str:
        return "Compose Binary"

    def execute(self, state: BuildState) -> StageResult:
        platform = self.require(state.platform, "a platform")
        source_entry = self.require(state.source_entry, "a source entry point")
        blob_path = self.require(state.blob_path, "a SEA blob")

        caps = capabilities_for(platform)
        version = state.manifest.version if state.manifest else None
        if state.config.include_version_in_name and not version:
            logger.info("Manifest declares no version; output name is unversioned")

        name = output_filename(
            source_entry.stem,
            caps,
            version=version,
            include_version=state.config.include_version_in_name,
        )
        output = OutputArtifact(path=state.project_root / name)
        _check_destination(output.path, source_entry.path)

        self._copy_runtime(output.path)
        state = state.model_copy(update={"output": output})

        if self._before_inject is not None:
            state = self._before_inject(state)

        package = self._settings.injector_package
        if self._toolchain.ensure(package):
            state = state.with_installed_tool(package)

        blob_arg = project_relative(blob_path, state.project_root)
        result = self._runner.run(
            self._toolchain.npx(
                package,
                output.name,
                SEA_BLOB_RESOURCE,
                blob_arg,
                "--sentinel-fuse",
                SEA_SENTINEL_FUSE,
                *caps.injector_extra_args,
                description="inject SEA blob",
            )
        )
        if not result.ok:
            raise BlobInjectionError(
                f"Injecting {blob_arg} into {output.name} failed "
                f"(exit {result.exit_code}); {output.name} is not distributable",
                tool_result=result,
            )

        return StageResult(state=state, summary=f"{output.name} composed")

    def _copy_runtime(self, destination: Path) -> None:
        source = self._toolchain.runtime_binary()
        if source is None:
            raise BinaryCopyError(
                "Node.js runtime not found on PATH (set SEAFORGE_NODE_PATH)"
            )
        logger.debug("Copying %s -> %s", source, destination)
        try:
            shutil.copy2(source, destination)
        except OSError as exc:
            raise BinaryCopyError(
                f"Cannot copy runtime {source} to {destination}: {exc}"
            ) from exc


def project_relative(path: Path, project_root: Path) -> str:
    """*path* as the tools see it from the project root (POSIX separators)."""
    try:
        return path.relative_to(project_root).as_posix()
    except ValueError:
        return str(path)


def _check_destination(destination: Path, source_entry: Path) -> None:
    # An extensionless entry (main: "server") names the output after itself.
    if destination.resolve() == source_entry.resolve():
        raise BinaryCopyError(
            f"Output {destination.name} would overwrite the entry point "
            f"{source_entry.name}; rename the entry file"
        )
    if destination.is_dir():
        raise BinaryCopyError(
            f"Output path {destination} is an existing directory"
        )
