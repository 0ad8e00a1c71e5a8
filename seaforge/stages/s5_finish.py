"""Stage 5: Platform Finish.

Two branches keyed on the platform capability table:

- Signature handling (macOS): ``prepare_binary`` strips the copied runtime's
  signature before injection (the compose stage calls it), and ``execute``
  re-signs the injected binary with an ad-hoc identity.
- Everything else: ``execute`` removes the transient artifacts this run
  created (the blob, and the bundle when bundling ran).

Every failure here is a warning. The binary stays valid either way.
"""

from __future__ import annotations

import logging
from pathlib import Path

from seaforge.config import BuildSettings
from seaforge.core.platforms import capabilities_for
from seaforge.core.tool_runner import ToolRunner
from seaforge.core.toolchain import NodeToolchain
from seaforge.errors import (
    BuildWarning,
    CleanupWarning,
    SignatureStripWarning,
    SigningWarning,
    ToolTimeoutError,
)
from seaforge.models.build import BuildState, StageResult
from seaforge.models.tools import ToolCommand
from seaforge.stages.base import BaseStage

logger = logging.getLogger(__name__)


class FinishStage(BaseStage):
    """Stage 5: code signing (macOS) or transient cleanup."""

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
        return "s5_finish"

    @property
    def display_name(self) -> str:
        return "Platform Finish"

    # ------------------------------------------------------------------
    # Pre-injection hook (called from the compose stage)
    # ------------------------------------------------------------------

    def prepare_binary(self, state: BuildState) -> BuildState:
        """Strip the existing code signature where the platform needs it."""
        platform = self.require(state.platform, "a platform")
        output = self.require(state.output, "an output binary")
        if not capabilities_for(platform).needs_signature_handling:
            return state

        command = self._codesign("--remove-signature", output.path,
                                 description="remove code signature")
        warning = self._run_nonfatal(
            command,
            SignatureStripWarning,
            f"Could not remove the signature of {output.name}; continuing",
        )
        return state.with_warning(warning) if warning else state

    # ------------------------------------------------------------------
    # Core logic
    # ------------------------------------------------------------------

    def execute(self, state: BuildState) -> StageResult:
        platform = self.require(state.platform, "a platform")
        output = self.require(state.output, "an output binary")

        if capabilities_for(platform).needs_signature_handling:
            command = self._codesign("--sign", "-", output.path,
                                     description="ad-hoc sign")
            warning = self._run_nonfatal(
                command,
                SigningWarning,
                f"Could not sign {output.name}; it may still run unsigned",
            )
            if warning:
                return StageResult(state=state.with_warning(warning),
                                   summary="signing failed")
            return StageResult(state=state, summary="signed (ad-hoc)")

        removed, failed = remove_artifacts(state.transient_artifacts)
        if failed:
            warning = CleanupWarning(
                "Partial cleanup; could not remove: "
                + ", ".join(str(p.name) for p in failed)
            )
            logger.warning("%s: %s", warning.kind, warning)
            return StageResult(
                state=state.with_warning(warning),
                summary=f"removed {len(removed)}, kept {len(failed)}",
            )
        return StageResult(
            state=state,
            summary=f"removed {len(removed)} transient file(s)",
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _codesign(self, *args: str | Path, description: str) -> ToolCommand:
        return self._toolchain.command(
            self._settings.codesign_command,
            *(str(a) for a in args),
            description=description,
        )

    def _run_nonfatal(
        self,
        command: ToolCommand,
        warning_cls: type[BuildWarning],
        message: str,
    ) -> BuildWarning | None:
        try:
            result = self._runner.run(command)
        except ToolTimeoutError as exc:
            warning = warning_cls(f"{message} ({exc})")
        else:
            if result.ok:
                return None
            detail = result.combined_output
            warning = warning_cls(f"{message}: {detail}" if detail else message)
        logger.warning("%s: %s", warning.kind, warning)
        return warning


def remove_artifacts(paths: tuple[Path, ...]) -> tuple[list[Path], list[Path]]:
    """Delete each existing path. Returns ``(removed, failed)``."""
    removed: list[Path] = []
    failed: list[Path] = []
    for path in paths:
        if not path.exists():
            continue
        try:
            path.unlink()
        except OSError as exc:
            logger.debug("Could not remove %s: %s", path, exc)
            failed.append(path)
        else:
            removed.append(path)
    return removed, failed
