"""``shipwright manifest`` — render the update manifest without publishing.

Expects one subdirectory per platform key holding that target's built
update bundle (and optionally its ``.sig``)::

    bundles/
      linux-x86_64/clash-nyanpasu_1.2.0_amd64.AppImage.tar.gz
      windows-x86_64/clash-nyanpasu_1.2.0_x64-setup.nsis.zip
      ...

Bundles without a ``.sig`` sibling are signed with SHIPWRIGHT_SIGNING_KEY.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console

from shipwright.bridge.crypto_bridge import ReleaseSigner, SigningError
from shipwright.config import ProdConfig
from shipwright.core.build_job import ArtifactCollectionError, collect_artifacts
from shipwright.core.manifest import UpdateManifestGenerator
from shipwright.core.targets import default_targets, select_targets
from shipwright.models.artifacts import BuildArtifact
from shipwright.models.manifest import PlatformEntry, UpdateManifest
from shipwright.models.targets import ArtifactKind, TargetDescriptor

console = Console()


def _bundle_entry(
    target: TargetDescriptor,
    bundle_dir: Path,
    base_url: str,
    signer: ReleaseSigner | None,
) -> PlatformEntry:
    files = sorted(p for p in bundle_dir.iterdir() if p.is_file())
    (bundle,) = _update_bundles(target, files)

    data = bundle.path.read_bytes()
    signature = bundle.signature
    if signature is None:
        if signer is None:
            raise SigningError(f"{bundle.name} has no .sig file and no signing key is configured")
        signature = signer.sign(data)

    return PlatformEntry(
        url=f"{base_url.rstrip('/')}/{bundle.asset_name}",
        signature=signature,
        size=len(data),
    )


def _update_bundles(target: TargetDescriptor, files: list[Path]) -> list[BuildArtifact]:
    # Installers need not be present for a manifest dry run.
    bundle_rules = tuple(
        r for r in target.recipe.rules if r.kind is ArtifactKind.UPDATE_BUNDLE
    )
    recipe = target.recipe.model_copy(update={"rules": bundle_rules})
    return collect_artifacts(target.model_copy(update={"recipe": recipe}), files)


def manifest_cmd(
    bundles: Path = typer.Argument(
        ...,
        exists=True,
        file_okay=False,
        help="Directory with one subdirectory per platform key.",
    ),
    version: str = typer.Option(..., "--version", "-v", help="Release version or tag."),
    base_url: str = typer.Option(
        ..., "--base-url", help="Download URL prefix the bundles will be served from."
    ),
    notes: str = typer.Option("", "--notes", help="Release notes."),
    target: list[str] = typer.Option(
        None,
        "--target",
        "-t",
        help="Only include this target (label or platform key). Repeatable.",
    ),
    output: Path = typer.Option(
        None, "--output", "-o", help="Write the manifest here instead of stdout."
    ),
) -> None:
    """Render the manifest for already built update bundles (dry run)."""
    config = ProdConfig()

    try:
        targets = select_targets(default_targets(), target or [])
    except ValueError as exc:
        console.print(f"[bold red]{exc}[/bold red]")
        raise typer.Exit(code=1)

    signer = ReleaseSigner(config.signing_key) if config.signing_key else None

    platforms: dict[str, PlatformEntry] = {}
    missing: list[str] = []
    for descriptor in targets:
        bundle_dir = bundles / descriptor.key
        if not bundle_dir.is_dir():
            if descriptor.required:
                missing.append(descriptor.key)
            continue
        try:
            platforms[descriptor.key] = _bundle_entry(descriptor, bundle_dir, base_url, signer)
        except (ArtifactCollectionError, SigningError, OSError) as exc:
            console.print(f"[bold red]{descriptor.key}:[/bold red] {exc}")
            raise typer.Exit(code=1)

    if missing:
        console.print(
            f"[bold red]Manifest withheld; no bundles for required platform(s):[/bold red] "
            f"{', '.join(missing)}"
        )
        raise typer.Exit(code=1)

    manifest = UpdateManifest(
        version=version[1:] if version.startswith("v") else version,
        notes=notes,
        platforms=platforms,
    )
    data = UpdateManifestGenerator.render(manifest)

    if output is not None:
        output.write_bytes(data)
        console.print(f"[green]Wrote {config.manifest_asset_name} for {len(platforms)} platform(s) to {output}[/green]")
    else:
        typer.echo(data.decode("utf-8"), nl=False)
