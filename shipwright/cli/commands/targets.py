"""``shipwright targets`` — list the build target descriptor set."""

from __future__ import annotations

import typer
from rich.console import Console

from shipwright.core.targets import default_targets, select_targets
from shipwright.monitor.renderer import ReportRenderer

console = Console()


def targets_cmd(
    target: list[str] = typer.Option(
        None,
        "--target",
        "-t",
        help="Only show this target (label or platform key). Repeatable.",
    ),
) -> None:
    """Show every target with its flags and update bundle pattern."""
    try:
        targets = select_targets(default_targets(), target or [])
    except ValueError as exc:
        console.print(f"[bold red]{exc}[/bold red]")
        raise typer.Exit(code=1)

    renderer = ReportRenderer(console=console)
    console.print(renderer.render_targets(targets))
