"""Stage 3: SEA Blob.

Points the blob descriptor at the current entry point (creating the
descriptor if needed) and runs ``node --experimental-sea-config`` against it.

The descriptor is always rewritten from the entry point resolved in this run,
never trusted from a previous run, so a stale ``main`` cannot leak into the
blob. A failed generation is not retried.
"""

from __future__ import annotations

import logging

from seaforge.config import BuildSettings
from seaforge.core.descriptor_store import DescriptorStore
from seaforge.core.toolchain import NodeToolchain
from seaforge.core.tool_runner import ToolRunner
from seaforge.errors import BlobGenerationError
from seaforge.models.build import BuildState, StageResult
from seaforge.stages.base import BaseStage

logger = logging.getLogger(__name__)


class BlobStage(BaseStage):
    """Stage 3: descriptor upsert + blob generation."""

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
        return "s3_blob"

    @property
    def display_name(self) -> str:
        return "SEA Blob"

    def execute(self, state: BuildState) -> StageResult:
        entry = self.require(state.entry_point, "an entry point")

        root = state.project_root
        store = DescriptorStore(
            root / self._settings.descriptor_filename,
            default_blob_filename=self._settings.blob_filename,
        )
        descriptor = store.upsert(entry.relative)
        blob_path = root / descriptor.output_blob_filename

        node = self._toolchain.runtime_binary()
        if node is None:
            raise BlobGenerationError(
                "Node.js runtime not found on PATH (set SEAFORGE_NODE_PATH)"
            )

        result = self._runner.run(
            self._toolchain.command(
                str(node),
                "--experimental-sea-config",
                store.path.name,
                description="generate SEA blob",
            )
        )
        if not result.ok:
            raise BlobGenerationError(
                f"Blob generation failed for {entry.relative} (exit {result.exit_code})",
                tool_result=result,
            )
        if not blob_path.is_file():
            raise BlobGenerationError(
                f"Blob tool succeeded but {descriptor.output_blob_filename} was not produced",
                tool_result=result,
            )

        transient = state.transient_artifacts
        if blob_path not in transient:
            transient = transient + (blob_path,)

        return StageResult(
            state=state.model_copy(
                update={
                    "descriptor_path": store.path,
                    "blob_path": blob_path,
                    "transient_artifacts": transient,
                }
            ),
            summary=f"{descriptor.output_blob_filename} from {entry.relative}",
        )
