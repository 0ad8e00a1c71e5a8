"""Seaforge pipeline stages, in execution order.

Usage::

    from seaforge.stages import STAGE_ORDER, EnvironmentStage

    stage = EnvironmentStage(settings)
    result = stage.run_stage(state)
"""

from __future__ import annotations

from seaforge.stages.base import BaseStage, StageExecutionError
from seaforge.stages.s1_environment import (
    CONVENTIONAL_ENTRY_FILES,
    EnvironmentStage,
    load_manifest,
    resolve_entry_point,
)
from seaforge.stages.s2_bundle import BundleStage
from seaforge.stages.s3_blob import BlobStage
from seaforge.stages.s4_compose import ComposeStage, output_filename
from seaforge.stages.s5_finish import FinishStage, remove_artifacts

STAGE_ORDER: list[str] = [
    "s1_environment",
    "s2_bundle",
    "s3_blob",
    "s4_compose",
    "s5_finish",
]

__all__ = [
    # Base
    "BaseStage",
    "StageExecutionError",
    "STAGE_ORDER",
    # Concrete stages
    "EnvironmentStage",
    "BundleStage",
    "BlobStage",
    "ComposeStage",
    "FinishStage",
    # Helpers
    "CONVENTIONAL_ENTRY_FILES",
    "load_manifest",
    "resolve_entry_point",
    "output_filename",
    "remove_artifacts",
]
