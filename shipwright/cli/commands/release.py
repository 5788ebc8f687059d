"""``shipwright release`` — build, publish and announce one release.

Reads the published-release trigger (a GitHub event payload, or explicit
``--tag``/``--release-id``), runs the orchestrator over the selected
targets and exits with the report's status code:

- 0 : complete
- 1 : aborted (release host unusable, bad configuration or trigger)
- 2 : partially complete (a required target failed)
"""

from __future__ import annotations

import json
import os
from pathlib import Path

import typer
from rich.console import Console

from shipwright.bridge.crypto_bridge import SigningError
from shipwright.builders import Builder
from shipwright.builders.command import CommandBuilder
from shipwright.channels.factory import build_channels
from shipwright.config import ProdConfig
from shipwright.core.orchestrator import ReleaseOrchestrator
from shipwright.core.production_guard import ProductionConfigError
from shipwright.core.targets import default_targets, select_targets
from shipwright.hosts.factory import build_host
from shipwright.models.release import ReleaseContext, ReleaseEvent, ReleaseEventError
from shipwright.monitor.renderer import ReportRenderer

console = Console()


def load_event(path: Path) -> ReleaseEvent:
    """Parse a GitHub ``release`` event payload file."""
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ReleaseEventError(f"Cannot read event payload {path}: {exc}") from exc
    if not isinstance(payload, dict):
        raise ReleaseEventError(f"Event payload {path} is not a JSON object")
    return ReleaseEvent.from_github_payload(payload)


def make_builder(config: ProdConfig) -> Builder:
    """Subprocess builder over ``config.project_dir``."""
    env: dict[str, str] = {}
    if config.signing_key_password:
        env["TAURI_KEY_PASSWORD"] = config.signing_key_password
    return CommandBuilder(config.project_dir, env=env)


def release_cmd(
    event: Path = typer.Option(
        None,
        "--event",
        "-e",
        help="GitHub release event JSON (defaults to $GITHUB_EVENT_PATH).",
    ),
    tag: str = typer.Option(None, "--tag", help="Release tag, when no event file is used."),
    release_id: str = typer.Option(None, "--release-id", help="Release identifier on the host."),
    notes: str = typer.Option("", "--notes", help="Release notes for the manifest."),
    target: list[str] = typer.Option(
        None,
        "--target",
        "-t",
        help="Only build this target (label or platform key). Repeatable.",
    ),
    host: str = typer.Option(
        None,
        "--host",
        help="Release host backend: github or local (defaults to SHIPWRIGHT_HOST_BACKEND).",
    ),
) -> None:
    """Build every target of a published release and publish the results.

    Prerequisites:
    - A published release exists on the host.
    - The signing key is configured (SHIPWRIGHT_SIGNING_KEY).
    """
    config = ProdConfig()

    # Resolve the trigger
    try:
        if tag:
            if not release_id:
                raise ReleaseEventError("--release-id is required together with --tag")
            release_event = ReleaseEvent(tag=tag, release_id=release_id, body=notes)
        else:
            event_path = event or (
                Path(os.environ["GITHUB_EVENT_PATH"]) if os.environ.get("GITHUB_EVENT_PATH") else None
            )
            if event_path is None:
                raise ReleaseEventError("No trigger: pass --event, set GITHUB_EVENT_PATH or use --tag")
            release_event = load_event(event_path)
    except ReleaseEventError as exc:
        console.print(f"[bold red]Invalid release trigger:[/bold red] {exc}")
        raise typer.Exit(code=1)

    context = ReleaseContext.from_event(release_event)

    try:
        targets = select_targets(default_targets(), target or [])
    except ValueError as exc:
        console.print(f"[bold red]{exc}[/bold red]")
        raise typer.Exit(code=1)

    try:
        orchestrator = ReleaseOrchestrator(
            config,
            targets=targets,
            builder=make_builder(config),
            host=build_host(config, host),
            channels=build_channels(config),
        )
    except (ProductionConfigError, SigningError, ValueError) as exc:
        console.print(f"[bold red]Cannot start release:[/bold red] {exc}")
        raise typer.Exit(code=1)

    console.print(
        f"[bold cyan]Releasing {context.tag} ({len(targets)} target(s))...[/bold cyan]"
    )
    report = orchestrator.run(context)

    console.print()
    ReportRenderer(console=console).print_report(report)
    raise typer.Exit(code=report.exit_code)
