"""The product's fixed target descriptor set.

Adding or changing a target is a data change here; the build job reads
behavior from the descriptor flags.
"""

from __future__ import annotations

from collections.abc import Iterable

from shipwright.models.targets import (
    ArtifactKind,
    ArtifactRule,
    BuildRecipe,
    TargetDescriptor,
    TargetOS,
)

_WINDOWS_RECIPE = BuildRecipe(
    rules=(
        ArtifactRule(pattern="*.nsis.zip", kind=ArtifactKind.UPDATE_BUNDLE,
                     media_type="application/zip"),
        ArtifactRule(pattern="*-setup.exe", media_type="application/vnd.microsoft.portable-executable"),
        ArtifactRule(pattern="*.msi", media_type="application/x-msi"),
        ArtifactRule(pattern="*portable*.zip", kind=ArtifactKind.PORTABLE,
                     media_type="application/zip"),
    )
)

_LINUX_RECIPE = BuildRecipe(
    rules=(
        ArtifactRule(pattern="*.AppImage.tar.gz", kind=ArtifactKind.UPDATE_BUNDLE,
                     media_type="application/gzip"),
        ArtifactRule(pattern="*.AppImage", media_type="application/vnd.appimage"),
        ArtifactRule(pattern="*.deb", media_type="application/vnd.debian.binary-package"),
    )
)

_MACOS_RECIPE = BuildRecipe(
    rules=(
        ArtifactRule(pattern="*.app.tar.gz", kind=ArtifactKind.UPDATE_BUNDLE,
                     media_type="application/gzip"),
        ArtifactRule(pattern="*.dmg", media_type="application/x-apple-diskimage"),
    )
)


DEFAULT_TARGETS: tuple[TargetDescriptor, ...] = (
    TargetDescriptor(
        os=TargetOS.WINDOWS,
        arch="x86_64",
        category="all",
        recipe=_WINDOWS_RECIPE,
        portable=True,
        prepare_args=("--nsis",),
    ),
    TargetDescriptor(
        os=TargetOS.LINUX,
        arch="x86_64",
        category="all",
        recipe=_LINUX_RECIPE,
        clean_stale_assets=True,
    ),
    TargetDescriptor(
        os=TargetOS.MACOS,
        arch="x86_64",
        category="amd64",
        recipe=_MACOS_RECIPE,
    ),
    TargetDescriptor(
        os=TargetOS.MACOS,
        arch="aarch64",
        category="aarch64",
        recipe=_MACOS_RECIPE,
        native_target="aarch64-apple-darwin",
        check_args=("--arch", "arm64", "--sidecar-host", "aarch64-apple-darwin"),
        build_args=("--target", "aarch64-apple-darwin"),
        asset_suffix="aarch64",
    ),
)


def default_targets() -> tuple[TargetDescriptor, ...]:
    """Return the fixed, ordered target set for the product."""
    return DEFAULT_TARGETS


def select_targets(
    targets: Iterable[TargetDescriptor], selectors: Iterable[str]
) -> tuple[TargetDescriptor, ...]:
    """Keep targets whose label or platform key is in *selectors*.

    An empty selector list keeps everything.  Unknown selectors raise
    ``ValueError`` so a typo never silently drops a platform.
    """
    targets = tuple(targets)
    wanted = [s.strip() for s in selectors if s.strip()]
    if not wanted:
        return targets

    known = {t.label for t in targets} | {t.key for t in targets}
    unknown = sorted(set(wanted) - known)
    if unknown:
        raise ValueError(
            f"Unknown target(s): {', '.join(unknown)}. Known: {', '.join(sorted(known))}"
        )
    return tuple(t for t in targets if t.label in wanted or t.key in wanted)
