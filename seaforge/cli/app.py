"""Main Typer application: the single ``seaforge`` command.

Entry point: ``seaforge`` (configured via pyproject.toml [project.scripts]).

Exit codes: ``0`` on success, ``1`` on any fatal pipeline failure.
Warnings never change the exit code.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from seaforge import __version__
from seaforge.config import BuildSettings
from seaforge.core.orchestrator import BuildOrchestrator
from seaforge.core.tool_runner import SubprocessToolRunner
from seaforge.errors import SeaBuildError
from seaforge.models.config import PipelineConfig
from seaforge.models.stages import DEFAULT_STAGE_DEFINITIONS
from seaforge.monitor.renderer import BuildRenderer

console = Console()

app = typer.Typer(
    name="seaforge",
    help="Package a Node.js project as a single executable application (SEA).",
    rich_markup_mode="rich",
    add_completion=False,
)


def configure_logging(level: str, console: Console) -> logging.Logger:
    """Route the ``seaforge`` logger through a RichHandler at *level*."""
    logger = logging.getLogger("seaforge")
    logger.setLevel(level.upper())
    logger.propagate = False

    handler = RichHandler(
        console=console,
        show_time=False,
        show_path=False,
        markup=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))

    logger.handlers.clear()
    logger.addHandler(handler)
    return logger


@app.command()
def build_cmd(
    include_version: bool = typer.Option(
        False,
        "-V",
        "--version",
        help="Embed the manifest version in the output filename (app-1.2.0).",
    ),
    no_bundle: bool = typer.Option(
        False,
        "--no-bundle",
        help="Skip bundling node_modules dependencies with esbuild.",
    ),
    project_dir: Path = typer.Option(
        Path("."),
        "--project-dir",
        "-C",
        help="Project root containing package.json.",
        file_okay=False,
        resolve_path=True,
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="Seconds each external tool may run (0 = unbounded). "
             "Overrides SEAFORGE_TOOL_TIMEOUT_SECONDS.",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Log every external command.",
    ),
) -> None:
    """Build a single executable from the Node.js project in PROJECT_DIR."""
    settings = BuildSettings()
    if timeout is not None:
        settings = settings.model_copy(update={"tool_timeout_seconds": timeout})
    configure_logging("DEBUG" if verbose else settings.log_level, console)

    console.print(f"[bold]seaforge[/bold] {__version__}  [dim]{project_dir}[/dim]")

    config = PipelineConfig(
        project_root=project_dir,
        include_version_in_name=include_version,
        skip_bundling=no_bundle,
    )
    orchestrator = BuildOrchestrator(
        config, settings=settings, runner=SubprocessToolRunner()
    )
    renderer = BuildRenderer(console=console)

    try:
        report = orchestrator.run()
    except SeaBuildError as exc:
        renderer.print_failure(
            exc,
            DEFAULT_STAGE_DEFINITIONS,
            orchestrator.get_states(),
            orchestrator.stage_machine.history,
            orchestrator.state.warnings,
        )
        raise typer.Exit(code=1)

    renderer.print_report(report, DEFAULT_STAGE_DEFINITIONS)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
