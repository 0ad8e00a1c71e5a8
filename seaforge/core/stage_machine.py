"""Deterministic stage state machine for a single build.

Enforces:
- Valid state transitions only (VALID_TRANSITIONS table)
- Prerequisites checked before RUNNING
- Cascade blocking of every downstream stage on failure
- Every transition recorded in the build history
"""

from __future__ import annotations

from collections import deque

from seaforge.models.stages import (
    SATISFIED_STATES,
    VALID_TRANSITIONS,
    StageDefinition,
    StageState,
    StageTransition,
)


class InvalidTransitionError(RuntimeError):
    """Raised when a requested state transition is not valid."""


class PrerequisiteNotMetError(RuntimeError):
    """Raised when a stage cannot run because prerequisites are not met."""


class StageMachine:
    """Tracks stage states for one pipeline run.

    Parameters
    ----------
    definitions:
        Stage definitions; each prerequisite must name a defined stage.
    """

    def __init__(self, definitions: list[StageDefinition]) -> None:
        self._definitions: dict[str, StageDefinition] = {
            d.stage_id: d for d in sorted(definitions, key=lambda d: d.ordinal)
        }
        # Reverse edges: stage_id -> stages that list it as a prerequisite
        self._dependents: dict[str, list[str]] = {sid: [] for sid in self._definitions}
        for d in self._definitions.values():
            for prereq in d.prerequisites:
                if prereq not in self._definitions:
                    raise ValueError(
                        f"Stage {d.stage_id!r} depends on unknown stage {prereq!r}"
                    )
                self._dependents[prereq].append(d.stage_id)

        self._states: dict[str, StageState] = {
            sid: StageState.NOT_STARTED for sid in self._definitions
        }
        self._history: list[StageTransition] = []

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def stage_ids(self) -> list[str]:
        """Stage ids in execution order."""
        return list(self._definitions)

    @property
    def history(self) -> list[StageTransition]:
        return list(self._history)

    def definition(self, stage_id: str) -> StageDefinition:
        return self._definitions[stage_id]

    def get_state(self, stage_id: str) -> StageState:
        return self._states[stage_id]

    def get_all_states(self) -> dict[str, StageState]:
        return dict(self._states)

    def blocking_reasons(self, stage_id: str) -> list[str]:
        """Human-readable reasons why *stage_id* cannot start yet."""
        reasons = []
        for prereq in self._definitions[stage_id].prerequisites:
            state = self._states[prereq]
            if state not in SATISFIED_STATES:
                name = self._definitions[prereq].display_name
                reasons.append(f"{name} ({prereq}) is {state.value}")
        return reasons

    def can_start(self, stage_id: str) -> tuple[bool, list[str]]:
        current = self._states[stage_id]
        if current != StageState.NOT_STARTED:
            return False, [f"Stage is currently {current.value}, not not_started"]
        reasons = self.blocking_reasons(stage_id)
        return not reasons, reasons

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def transition(
        self, stage_id: str, target: StageState, *, reason: str | None = None
    ) -> StageTransition:
        """Move *stage_id* to *target*, recording it in the history.

        Entering FAILED cascades BLOCKED to every transitive dependent that
        has not started.
        """
        current = self._states[stage_id]
        allowed = VALID_TRANSITIONS.get(current, set())
        if target not in allowed:
            raise InvalidTransitionError(
                f"Cannot transition {stage_id} from {current.value} to {target.value}. "
                f"Allowed: {sorted(s.value for s in allowed)}"
            )

        if target == StageState.RUNNING:
            reasons = self.blocking_reasons(stage_id)
            if reasons:
                raise PrerequisiteNotMetError(
                    f"Cannot start {stage_id}: prerequisites not met. "
                    f"Blocked by: {'; '.join(reasons)}"
                )

        record = self._record(stage_id, current, target, reason)

        if target == StageState.FAILED:
            for blocked_id in self._transitive_dependents(stage_id):
                if self._states[blocked_id] == StageState.NOT_STARTED:
                    self._record(
                        blocked_id,
                        StageState.NOT_STARTED,
                        StageState.BLOCKED,
                        f"upstream {stage_id} failed",
                    )

        return record

    def _record(
        self,
        stage_id: str,
        from_state: StageState,
        to_state: StageState,
        reason: str | None,
    ) -> StageTransition:
        record = StageTransition(
            stage_id=stage_id,
            from_state=from_state,
            to_state=to_state,
            reason=reason,
        )
        self._states[stage_id] = to_state
        self._history.append(record)
        return record

    def _transitive_dependents(self, stage_id: str) -> list[str]:
        result: list[str] = []
        queue = deque(self._dependents.get(stage_id, []))
        seen: set[str] = set()
        while queue:
            node = queue.popleft()
            if node in seen:
                continue
            seen.add(node)
            result.append(node)
            queue.extend(self._dependents.get(node, []))
        return result
