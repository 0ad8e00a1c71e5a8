"""External tool invocation models — the command descriptor and its outcome."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict


class ToolCommand(BaseModel):
    """A single external process invocation.

    ``argv[0]`` is the executable name or path; it is resolved on PATH by the
    runner. ``timeout`` of ``None`` means the invocation is unbounded.
    """

    model_config = ConfigDict(frozen=True)

    argv: tuple[str, ...]
    cwd: Path
    timeout: float | None = None
    description: str = ""

    @property
    def program(self) -> str:
        return self.argv[0]

    def display(self) -> str:
        """Shell-like rendering of the command line, for logs and errors."""
        return " ".join(
            f'"{arg}"' if " " in arg else arg for arg in self.argv
        )


class ToolResult(BaseModel):
    """Outcome of a finished external process."""

    model_config = ConfigDict(frozen=True)

    command: ToolCommand
    exit_code: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.exit_code == 0

    @property
    def combined_output(self) -> str:
        parts = [p.rstrip() for p in (self.stdout, self.stderr) if p.strip()]
        return "\n".join(parts)
