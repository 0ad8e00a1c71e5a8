"""Seaforge data models — all Pydantic v2, all frozen (immutable)."""

from seaforge.models.build import BuildReport, BuildState, OutputArtifact, StageResult
from seaforge.models.config import PipelineConfig, Platform
from seaforge.models.descriptor import DEFAULT_BLOB_FILENAME, BlobDescriptor
from seaforge.models.manifest import EntryPoint, ProjectManifest
from seaforge.models.stages import (
    DEFAULT_STAGE_DEFINITIONS,
    SATISFIED_STATES,
    VALID_TRANSITIONS,
    StageDefinition,
    StageState,
    StageTransition,
)
from seaforge.models.tools import ToolCommand, ToolResult

__all__ = [
    # config
    "Platform",
    "PipelineConfig",
    # manifest
    "ProjectManifest",
    "EntryPoint",
    # descriptor
    "BlobDescriptor",
    "DEFAULT_BLOB_FILENAME",
    # stages
    "StageState",
    "StageDefinition",
    "StageTransition",
    "VALID_TRANSITIONS",
    "SATISFIED_STATES",
    "DEFAULT_STAGE_DEFINITIONS",
    # tools
    "ToolCommand",
    "ToolResult",
    # build
    "BuildState",
    "StageResult",
    "OutputArtifact",
    "BuildReport",
]
