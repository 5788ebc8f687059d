"""Main Typer application — imports and registers all CLI commands.

Entry point: ``shipwright`` (configured via pyproject.toml project.scripts).

Commands: release, targets, keygen, manifest.
"""

from __future__ import annotations

import logging

import typer
from rich.console import Console
from rich.logging import RichHandler

from shipwright.cli.commands.keygen import keygen_cmd
from shipwright.cli.commands.manifest_cmd import manifest_cmd
from shipwright.cli.commands.release import release_cmd
from shipwright.cli.commands.targets import targets_cmd
from shipwright.config import ProdConfig

app = typer.Typer(
    name="shipwright",
    help="Shipwright: build, sign, publish and announce desktop releases.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)


def configure_logging(level: str) -> None:
    """Route stdlib logging through Rich on stderr at *level*."""
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True, show_path=False)],
        force=True,
    )


@app.callback()
def main_callback(
    log_level: str = typer.Option(
        None,
        "--log-level",
        help="Logging level (defaults to SHIPWRIGHT_LOG_LEVEL).",
    ),
) -> None:
    """Shipwright release orchestrator."""
    configure_logging(log_level or ProdConfig().log_level)


# Register subcommands
app.command(name="release", help="Build, publish and announce a release.")(release_cmd)
app.command(name="targets", help="List the build targets.")(targets_cmd)
app.command(name="keygen", help="Generate an Ed25519 signing keypair.")(keygen_cmd)
app.command(name="manifest", help="Render the update manifest for built bundles (dry run).")(
    manifest_cmd
)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
