"""Stage 1: Environment.

Read-only probe of the host and the project:
    - Detect the platform (unless the config pins one).
    - Locate and parse the manifest.
    - Resolve the entry point: the manifest's ``main`` if declared, otherwise
      the first conventional filename that exists.

Nothing is written and no process is started.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import ValidationError

from seaforge.config import BuildSettings
from seaforge.core.platforms import detect_platform
from seaforge.errors import (
    EntryPointMissingError,
    ManifestMissingError,
    ManifestParseError,
)
from seaforge.models.build import BuildState, StageResult
from seaforge.models.manifest import EntryPoint, ProjectManifest
from seaforge.stages.base import BaseStage

logger = logging.getLogger(__name__)

# Probed in order when the manifest declares no entry point.
CONVENTIONAL_ENTRY_FILES: tuple[str, ...] = ("app.js", "index.js")


class EnvironmentStage(BaseStage):
    """Stage 1: platform, manifest and entry point."""

    def __init__(self, settings: BuildSettings) -> None:
        self._settings = settings

    @property
    def stage_id(self) -> str:
        return "s1_environment"

    @property
    def display_name(self) -> str:
        return "Environment"

    def execute(self, state: BuildState) -> StageResult:
        platform = state.config.platform or detect_platform()
        root = state.project_root

        manifest = load_manifest(root / self._settings.manifest_filename)
        entry = resolve_entry_point(root, manifest)

        logger.info(
            "Platform %s, entry point %s", platform.display_name, entry.relative
        )
        return StageResult(
            state=state.model_copy(
                update={
                    "platform": platform,
                    "manifest": manifest,
                    "source_entry": entry,
                    "entry_point": entry,
                }
            ),
            summary=f"{platform.display_name}, entry {entry.relative}",
        )


def load_manifest(path: Path) -> ProjectManifest:
    """Parse the project manifest.

    Raises ``ManifestMissingError`` if the file is absent and
    ``ManifestParseError`` if it is not a JSON object with the expected types.
    """
    if not path.is_file():
        raise ManifestMissingError(f"{path.name} not found in {path.parent}")

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise ManifestParseError(f"Cannot parse {path.name}: {exc}") from exc

    if not isinstance(data, dict):
        raise ManifestParseError(f"{path.name} must contain a JSON object")

    try:
        return ProjectManifest.model_validate(data)
    except ValidationError as exc:
        raise ManifestParseError(f"Invalid {path.name}: {exc}") from exc


def resolve_entry_point(
    project_root: Path,
    manifest: ProjectManifest,
    candidates: tuple[str, ...] = CONVENTIONAL_ENTRY_FILES,
) -> EntryPoint:
    """Pick the application's entry file.

    A declared ``main`` is authoritative: if it does not exist the build fails
    rather than falling back to a conventional name.
    """
    if manifest.main:
        entry = EntryPoint.from_path(project_root, Path(manifest.main))
        if not entry.exists():
            raise EntryPointMissingError(
                f"Entry point declared in manifest does not exist: {manifest.main}"
            )
        return entry

    for name in candidates:
        entry = EntryPoint.from_path(project_root, Path(name))
        if entry.exists():
            logger.debug("Using conventional entry point %s", name)
            return entry

    raise EntryPointMissingError(
        f"No entry point: manifest declares no 'main' and none of "
        f"{', '.join(candidates)} exist in {project_root}"
    )
