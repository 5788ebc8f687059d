"""``shipwright keygen`` — generate an Ed25519 release signing keypair."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.panel import Panel

from shipwright.bridge.crypto_bridge import generate_keypair, key_fingerprint

console = Console()


def keygen_cmd(
    output: Path = typer.Option(
        None,
        "--output",
        "-o",
        help="Write the private key to this file (mode 0600) instead of printing it.",
    ),
) -> None:
    """Generate a signing keypair for SHIPWRIGHT_SIGNING_KEY.

    The public key is what the update client verifies signatures against.
    """
    private_key, public_key = generate_keypair()

    lines = [
        f"[bold]Public key:[/bold]  {public_key}",
        f"[bold]Fingerprint:[/bold] {key_fingerprint(public_key)}",
        "",
    ]
    if output is not None:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(private_key + "\n", encoding="utf-8")
        output.chmod(0o600)
        lines.append(f"[bold]Private key written to:[/bold] {output}")
    else:
        lines.append(f"[bold]Private key:[/bold] {private_key}")
        lines.append("")
        lines.append("[dim]Store the private key as the SHIPWRIGHT_SIGNING_KEY secret.[/dim]")

    console.print(
        Panel(
            "\n".join(lines),
            title="[bold]Release signing key[/bold]",
            border_style="green",
            padding=(1, 2),
        )
    )
