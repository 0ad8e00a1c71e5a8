"""Abstract base stage with an enforced lifecycle.

Every concrete stage inherits from BaseStage and implements only ``execute()``.
The ``run_stage()`` wrapper is **not overridable**; it enforces the canonical
ordering:

    log start -> execute -> validate result -> log outcome

Typed fatal errors (``SeaBuildError``) pass through unchanged so the CLI can
report the precise failure kind together with the tool's diagnostics.
"""

from __future__ import annotations

import abc
import logging
from typing import TypeVar, final

from seaforge.errors import SeaBuildError
from seaforge.models.build import BuildState, StageResult
from seaforge.models.stages import StageState

logger = logging.getLogger(__name__)

T = TypeVar("T")


class StageExecutionError(RuntimeError):
    """Raised when a stage returns a malformed result or runs without its inputs."""


class BaseStage(abc.ABC):
    """Abstract base for all pipeline stages.

    Subclasses **must** implement:
        * ``stage_id``:      unique identifier (e.g. ``"s3_blob"``).
        * ``display_name``:  human-readable name shown in the build summary.
        * ``execute(state)``: the stage's core logic, returning a
          ``StageResult`` that carries the next ``BuildState``.

    Subclasses **must not** override ``run_stage()``.
    """

    @property
    @abc.abstractmethod
    def stage_id(self) -> str:
        """Unique stage identifier (e.g. ``'s1_environment'``)."""
        ...

    @property
    @abc.abstractmethod
    def display_name(self) -> str:
        """Human-readable display name."""
        ...

    @abc.abstractmethod
    def execute(self, state: BuildState) -> StageResult:
        """Transform *state* into the next state, or raise a ``SeaBuildError``."""
        ...

    # ------------------------------------------------------------------
    # Lifecycle (NOT overridable)
    # ------------------------------------------------------------------

    @final
    def run_stage(self, state: BuildState) -> StageResult:
        """Execute the stage lifecycle.  **Do not override.**"""
        logger.info("%s [%s] starting", self.display_name, self.stage_id)

        try:
            result = self.execute(state)
        except SeaBuildError as exc:
            logger.error(
                "%s [%s] failed: %s", self.display_name, self.stage_id, exc
            )
            raise

        if result.status not in (StageState.PASSED, StageState.SKIPPED):
            raise StageExecutionError(
                f"Stage {self.stage_id} returned non-terminal status {result.status.value}"
            )

        logger.info(
            "%s [%s] %s%s",
            self.display_name,
            self.stage_id,
            result.status.value,
            f": {result.summary}" if result.summary else "",
        )
        return result

    def require(self, value: T | None, what: str) -> T:
        """Return *value*, or fail if no earlier stage produced it."""
        if value is None:
            raise StageExecutionError(
                f"Stage {self.stage_id} needs {what}, which no earlier stage produced"
            )
        return value

    def __repr__(self) -> str:
        return f"<{type(self).__name__} stage_id={self.stage_id!r}>"
