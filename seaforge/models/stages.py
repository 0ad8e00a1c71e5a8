"""Stage state machine models — deterministic, linear transitions."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict


class StageState(str, Enum):
    """Strict state model for each pipeline stage."""

    NOT_STARTED = "not_started"
    RUNNING = "running"
    PASSED = "passed"
    SKIPPED = "skipped"
    FAILED = "failed"
    BLOCKED = "blocked"


# Valid state transitions, enforced structurally by StageMachine.
# There is no retry: FAILED is terminal for the run, like PASSED and SKIPPED.
VALID_TRANSITIONS: dict[StageState, set[StageState]] = {
    StageState.NOT_STARTED: {StageState.RUNNING, StageState.BLOCKED},
    StageState.RUNNING: {StageState.PASSED, StageState.SKIPPED, StageState.FAILED},
    StageState.PASSED: set(),
    StageState.SKIPPED: set(),
    StageState.FAILED: set(),
    StageState.BLOCKED: set(),
}

# States that satisfy a downstream stage's prerequisite.
SATISFIED_STATES: frozenset[StageState] = frozenset(
    {StageState.PASSED, StageState.SKIPPED}
)


class StageDefinition(BaseModel):
    """Defines a pipeline stage and its prerequisites."""

    model_config = ConfigDict(frozen=True)

    stage_id: str
    display_name: str
    ordinal: int
    prerequisites: list[str] = []


class StageTransition(BaseModel):
    """Records a single state transition for the build history."""

    model_config = ConfigDict(frozen=True)

    stage_id: str
    from_state: StageState
    to_state: StageState
    reason: str | None = None


DEFAULT_STAGE_DEFINITIONS: list[StageDefinition] = [
    StageDefinition(
        stage_id="s1_environment",
        display_name="Environment",
        ordinal=1,
        prerequisites=[],
    ),
    StageDefinition(
        stage_id="s2_bundle",
        display_name="Bundle",
        ordinal=2,
        prerequisites=["s1_environment"],
    ),
    StageDefinition(
        stage_id="s3_blob",
        display_name="SEA Blob",
        ordinal=3,
        prerequisites=["s2_bundle"],
    ),
    StageDefinition(
        stage_id="s4_compose",
        display_name="Compose Binary",
        ordinal=4,
        prerequisites=["s3_blob"],
    ),
    StageDefinition(
        stage_id="s5_finish",
        display_name="Platform Finish",
        ordinal=5,
        prerequisites=["s4_compose"],
    ),
]
