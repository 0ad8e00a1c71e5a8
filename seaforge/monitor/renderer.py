"""Rich terminal renderer for build progress and outcome.

Color scheme
------------
- green     : PASSED
- cyan      : SKIPPED
- red       : FAILED
- yellow    : RUNNING
- dim       : NOT_STARTED
- bold red  : BLOCKED
"""

from __future__ import annotations

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from seaforge.errors import BuildWarning, SeaBuildError
from seaforge.models.build import BuildReport
from seaforge.models.config import Platform
from seaforge.models.stages import StageDefinition, StageState, StageTransition

_STATE_LABELS: dict[StageState, str] = {
    StageState.PASSED: "[green]PASSED[/green]",
    StageState.SKIPPED: "[cyan]SKIPPED[/cyan]",
    StageState.FAILED: "[bold red]FAILED[/bold red]",
    StageState.RUNNING: "[yellow]RUNNING[/yellow]",
    StageState.NOT_STARTED: "[dim]NOT STARTED[/dim]",
    StageState.BLOCKED: "[bold red]BLOCKED[/bold red]",
}


def format_size(num_bytes: int) -> str:
    mb = num_bytes / 1024 / 1024
    if mb >= 1:
        return f"{mb:.1f} MB"
    return f"{num_bytes / 1024:.0f} KB"


class BuildRenderer:
    """Renders stage tables, warnings, failures and the success summary.

    Parameters
    ----------
    console:
        Rich Console instance.  A new one is created if not provided.
    """

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    # ------------------------------------------------------------------
    # Renderables
    # ------------------------------------------------------------------

    def stage_table(
        self,
        definitions: list[StageDefinition],
        states: dict[str, StageState],
        history: list[StageTransition] | None = None,
    ) -> Table:
        """One row per stage with its final state and the last recorded note."""
        notes: dict[str, str] = {}
        for transition in history or []:
            if transition.reason:
                notes[transition.stage_id] = transition.reason

        table = Table(title="Build stages", show_lines=False, expand=False)
        table.add_column("#", justify="right", style="dim")
        table.add_column("Stage", style="bold")
        table.add_column("State", justify="center")
        table.add_column("Details", overflow="fold")

        for definition in sorted(definitions, key=lambda d: d.ordinal):
            state = states.get(definition.stage_id, StageState.NOT_STARTED)
            table.add_row(
                str(definition.ordinal),
                definition.display_name,
                _STATE_LABELS.get(state, state.value),
                escape(notes.get(definition.stage_id, "")),
            )
        return table

    def summary_panel(self, report: BuildReport) -> Panel:
        name = report.output.name
        if report.platform == Platform.WINDOWS:
            run_hint = f"Double-click {name} or run .\\{name}"
        else:
            run_hint = f"./{name}"

        lines = [
            "[bold green]Build complete![/bold green]",
            "",
            f"[bold]Executable:[/bold] {escape(str(report.output.path))}",
            f"[bold]Size:[/bold]       {format_size(report.output_size_bytes)}",
            f"[bold]Platform:[/bold]   {report.platform.display_name}",
            f"[bold]Bundled:[/bold]    {'yes' if report.bundled else 'no'}",
            f"[bold]Run:[/bold]        {run_hint}",
        ]
        if report.installed_tools:
            lines.append(
                f"[bold]Installed:[/bold]  {', '.join(report.installed_tools)} "
                "(added to devDependencies)"
            )
        lines += [
            "",
            "[dim]The executable runs without Node.js installed.",
            f"{escape(report.descriptor_filename)} is only needed to rebuild, "
            "not at runtime.[/dim]",
        ]
        border = "green" if report.distributable else "yellow"
        return Panel(
            "\n".join(lines),
            title="[bold]Seaforge[/bold]",
            border_style=border,
            padding=(1, 2),
        )

    # ------------------------------------------------------------------
    # Printing
    # ------------------------------------------------------------------

    def print_warnings(self, warnings: tuple[BuildWarning, ...]) -> None:
        if not warnings:
            return
        self.console.print(f"[yellow][bold]Warnings ({len(warnings)}):[/bold][/yellow]")
        for warning in warnings:
            self.console.print(f"  [yellow]- {warning.kind}:[/yellow] {escape(str(warning))}")

    def print_report(
        self, report: BuildReport, definitions: list[StageDefinition]
    ) -> None:
        self.console.print()
        self.console.print(
            self.stage_table(definitions, report.stage_states, report.history)
        )
        self.print_warnings(report.warnings)
        self.console.print()
        self.console.print(self.summary_panel(report))

    def print_failure(
        self,
        error: SeaBuildError,
        definitions: list[StageDefinition],
        states: dict[str, StageState],
        history: list[StageTransition],
        warnings: tuple[BuildWarning, ...] = (),
    ) -> None:
        self.console.print()
        self.console.print(self.stage_table(definitions, states, history))
        self.print_warnings(warnings)
        self.console.print()
        self.console.print(
            f"[bold red]{type(error).__name__}:[/bold red] {escape(str(error))}"
        )
        if error.tool_result is not None:
            self.console.print(f"[dim]$ {escape(error.tool_result.command.display())}[/dim]")
        if error.diagnostics:
            # Tool output is printed verbatim, never interpreted as markup.
            self.console.print(error.diagnostics, markup=False, highlight=False)
