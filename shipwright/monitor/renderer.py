"""Rich terminal renderer for release reports.

Color scheme
------------
- green     : succeeded target, delivered announcement, COMPLETE
- red       : failed target, failed announcement, ABORTED
- yellow    : PARTIALLY_COMPLETE
- dim       : optional targets and empty cells
"""

from __future__ import annotations

from rich.console import Console, Group
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from shipwright.models.manifest import UpdateManifest
from shipwright.models.outcomes import PipelineStatus, ReleaseReport, TargetOutcome
from shipwright.models.targets import ArtifactKind, TargetDescriptor

# ---------------------------------------------------------------------------
# Status -> Rich style mapping
# ---------------------------------------------------------------------------

_STATUS_STYLES: dict[PipelineStatus, str] = {
    PipelineStatus.COMPLETE: "green",
    PipelineStatus.PARTIALLY_COMPLETE: "yellow",
    PipelineStatus.ABORTED: "red",
}

_STATUS_LABELS: dict[PipelineStatus, str] = {
    PipelineStatus.COMPLETE: "[bold green]COMPLETE[/bold green]",
    PipelineStatus.PARTIALLY_COMPLETE: "[bold yellow]PARTIALLY COMPLETE[/bold yellow]",
    PipelineStatus.ABORTED: "[bold red]ABORTED[/bold red]",
}


def _human_size(size: int) -> str:
    value = float(size)
    for unit in ("B", "KiB", "MiB"):
        if value < 1024:
            return f"{value:.0f} {unit}" if unit == "B" else f"{value:.1f} {unit}"
        value /= 1024
    return f"{value:.1f} GiB"


class ReportRenderer:
    """Renders ``ReleaseReport`` and descriptor sets as Rich output.

    Parameters
    ----------
    console:
        Rich Console instance.  A new one is created if not provided.
    """

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    # ------------------------------------------------------------------
    # Report
    # ------------------------------------------------------------------

    def render_report(self, report: ReleaseReport) -> Panel:
        """Render a report as a Panel holding the outcome table and summary."""
        parts: list = [self._outcome_table(report.outcomes)]

        if report.manifest is not None:
            parts += [Text(""), self._manifest_table(report.manifest)]
        if report.deliveries:
            parts += [Text(""), self._delivery_table(report)]

        summary = [
            f"[bold]Tag:[/bold] {report.context.tag}",
            f"[bold]Status:[/bold] {_STATUS_LABELS[report.status]}",
            f"[bold]Assets:[/bold] {len(report.records)}",
        ]
        if report.manifest_record is not None:
            summary.append(f"[bold]Manifest:[/bold] {report.manifest_record.name}")
        parts += [Text(""), Text.from_markup("  |  ".join(summary))]
        if report.reason:
            parts.append(Text.from_markup(f"[bold]Reason:[/bold] {escape(report.reason)}"))

        return Panel(
            Group(*parts),
            title=f"[bold]Release {report.context.tag}[/bold]",
            border_style=_STATUS_STYLES[report.status],
            padding=(1, 2),
        )

    def _outcome_table(self, outcomes: tuple[TargetOutcome, ...]) -> Table:
        table = Table(show_header=True, header_style="bold cyan", expand=True)
        table.add_column("Target", min_width=22)
        table.add_column("Result", justify="center", min_width=10)
        table.add_column("Assets", justify="right", width=8)
        table.add_column("Time", justify="right", width=9)
        table.add_column("Details", min_width=20)

        for outcome in outcomes:
            label = outcome.target.label
            if not outcome.target.required:
                label += " [dim](optional)[/dim]"
            if outcome.succeeded:
                result = "[green]OK[/green]"
                details = outcome.update_record.name if outcome.update_record else "[dim]-[/dim]"
            else:
                result = "[bold red]FAILED[/bold red]"
                step = outcome.failed_step.value if outcome.failed_step else "job"
                # Only the first line; builder output tails are long
                first_line = (outcome.error or "").splitlines()[0] if outcome.error else ""
                details = f"[red]{step}: {escape(first_line)}[/red]"
            table.add_row(
                label,
                result,
                str(len(outcome.records)),
                f"{outcome.duration_seconds:.1f}s",
                details,
            )
        if not outcomes:
            table.add_row("[dim]no targets built[/dim]", "", "", "", "")
        return table

    def _manifest_table(self, manifest: UpdateManifest) -> Table:
        table = Table(
            title=f"Update manifest {manifest.version}",
            show_header=True,
            header_style="bold cyan",
            expand=True,
        )
        table.add_column("Platform", style="cyan")
        table.add_column("URL")
        table.add_column("Size", justify="right")
        for key, entry in sorted(manifest.platforms.items()):
            table.add_row(key, entry.url, _human_size(entry.size))
        return table

    def _delivery_table(self, report: ReleaseReport) -> Table:
        table = Table(title="Announcements", show_header=True, header_style="bold cyan")
        table.add_column("Channel")
        table.add_column("Delivered", justify="center")
        table.add_column("Error")
        for result in report.deliveries:
            delivered = "[green]Yes[/green]" if result.delivered else "[red]No[/red]"
            table.add_row(result.channel, delivered, escape(result.error) if result.error else "[dim]-[/dim]")
        return table

    def print_report(self, report: ReleaseReport) -> None:
        self.console.print(self.render_report(report))

    # ------------------------------------------------------------------
    # Descriptor set
    # ------------------------------------------------------------------

    def render_targets(self, targets: tuple[TargetDescriptor, ...]) -> Table:
        """Render the descriptor set as a table."""
        table = Table(title="Build targets", show_header=True, header_style="bold cyan")
        table.add_column("Label", style="cyan")
        table.add_column("Platform key")
        table.add_column("Native target")
        table.add_column("Portable", justify="center")
        table.add_column("Cleans stale", justify="center")
        table.add_column("Required", justify="center")
        table.add_column("Update bundle")

        for target in targets:
            bundle = next(
                (r.pattern for r in target.recipe.rules if r.kind is ArtifactKind.UPDATE_BUNDLE), "-"
            )
            table.add_row(
                target.label,
                target.key,
                target.native_target or "[dim]-[/dim]",
                "[green]Yes[/green]" if target.portable else "[dim]No[/dim]",
                "[green]Yes[/green]" if target.clean_stale_assets else "[dim]No[/dim]",
                "[green]Yes[/green]" if target.required else "[yellow]No[/yellow]",
                bundle,
            )
        return table
