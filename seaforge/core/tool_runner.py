"""The single seam through which the pipeline starts external processes.

Every stage builds a ``ToolCommand`` and hands it to a ``ToolRunner``. The
production runner shells out with ``subprocess``; tests substitute a fake that
records commands and returns scripted results.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
from typing import Protocol

from seaforge.errors import ToolTimeoutError
from seaforge.models.tools import ToolCommand, ToolResult

logger = logging.getLogger(__name__)

# Conventional shell exit status for "command not found".
COMMAND_NOT_FOUND = 127


class ToolRunner(Protocol):
    """Runs a command to completion and reports its exit status and output."""

    def run(self, command: ToolCommand) -> ToolResult: ...


class SubprocessToolRunner:
    """Blocking ``subprocess.run`` implementation of ``ToolRunner``.

    Output is captured rather than streamed so that a failing tool's
    diagnostics can be attached to the error raised by the calling stage.
    """

    def run(self, command: ToolCommand) -> ToolResult:
        # Resolve through PATH/PATHEXT so that npm shims (npx.cmd) work on Windows.
        executable = shutil.which(command.program)
        if executable is None:
            logger.debug("%s: executable not found on PATH", command.program)
            return ToolResult(
                command=command,
                exit_code=COMMAND_NOT_FOUND,
                stderr=f"{command.program}: command not found",
            )

        logger.debug("run [cwd=%s]: %s", command.cwd, command.display())
        try:
            completed = subprocess.run(
                [executable, *command.argv[1:]],
                cwd=str(command.cwd),
                capture_output=True,
                text=True,
                errors="replace",
                timeout=command.timeout,
            )
        except subprocess.TimeoutExpired as exc:
            partial = ToolResult(
                command=command,
                exit_code=-1,
                stdout=_as_text(exc.stdout),
                stderr=_as_text(exc.stderr),
            )
            raise ToolTimeoutError(
                f"{command.display()} did not finish within {command.timeout:g}s",
                tool_result=partial,
                timeout=command.timeout,
            ) from exc
        except OSError as exc:
            return ToolResult(
                command=command,
                exit_code=COMMAND_NOT_FOUND,
                stderr=f"{command.program}: {exc}",
            )

        logger.debug("%s exited with %d", command.program, completed.returncode)
        return ToolResult(
            command=command,
            exit_code=completed.returncode,
            stdout=completed.stdout or "",
            stderr=completed.stderr or "",
        )


def _as_text(data: bytes | str | None) -> str:
    if data is None:
        return ""
    if isinstance(data, bytes):
        return data.decode("utf-8", errors="replace")
    return data
