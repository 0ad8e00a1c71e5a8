"""Pipeline configuration model and the supported platform enum."""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict


class Platform(str, Enum):
    """Target platform; always the host, since the host runtime is copied."""

    WINDOWS = "windows"
    MACOS = "macos"
    LINUX = "linux"

    @property
    def display_name(self) -> str:
        return {
            Platform.WINDOWS: "Windows",
            Platform.MACOS: "macOS",
            Platform.LINUX: "Linux",
        }[self]


class PipelineConfig(BaseModel):
    """Per-invocation configuration, fixed before the first stage runs.

    ``platform`` overrides host detection; ``None`` means "detect the host"
    during the environment stage.
    """

    model_config = ConfigDict(frozen=True)

    project_root: Path
    platform: Platform | None = None
    include_version_in_name: bool = False
    skip_bundling: bool = False
