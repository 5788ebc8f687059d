"""Build target descriptors and their artifact recipes.

A ``TargetDescriptor`` is identified by ``(os, arch, category)``.  Everything
else on it is a behavior flag consumed by the uniform build job, so that
per-target differences live in data rather than in branches.
"""

from __future__ import annotations

import fnmatch
import re
from enum import Enum

from pydantic import BaseModel, ConfigDict, model_validator


class TargetOS(str, Enum):
    """Operating systems the product ships installers for."""

    WINDOWS = "windows"
    LINUX = "linux"
    MACOS = "macos"


class ArtifactKind(str, Enum):
    """Role of a built file in the release."""

    INSTALLER = "installer"
    UPDATE_BUNDLE = "update_bundle"
    PORTABLE = "portable"


# Update-client platform names differ from our OS names on macOS only.
_PLATFORM_NAMES: dict[TargetOS, str] = {
    TargetOS.WINDOWS: "windows",
    TargetOS.LINUX: "linux",
    TargetOS.MACOS: "darwin",
}


class ArtifactRule(BaseModel):
    """Matches produced files by name and classifies them."""

    model_config = ConfigDict(frozen=True)

    pattern: str  # glob on the file name, e.g. "*.AppImage.tar.gz"
    kind: ArtifactKind = ArtifactKind.INSTALLER
    media_type: str = "application/octet-stream"

    def matches(self, file_name: str) -> bool:
        return fnmatch.fnmatchcase(file_name, self.pattern)

    @property
    def extension(self) -> str:
        """Literal extension the pattern ends with, e.g. ``.app.tar.gz``.

        Taken from the tail after the last wildcard; empty when that tail
        holds no dot.
        """
        tail = re.split(r"[*?\]]", self.pattern)[-1]
        _, dot, rest = tail.partition(".")
        return dot + rest


class BuildRecipe(BaseModel):
    """Which artifacts a target must produce.

    Every rule must match at least one file for the build to count as
    successful.  Exactly one rule designates the update bundle that the
    manifest advertises for the target.
    """

    model_config = ConfigDict(frozen=True)

    rules: tuple[ArtifactRule, ...]

    @model_validator(mode="after")
    def _single_update_bundle(self) -> BuildRecipe:
        bundles = [r for r in self.rules if r.kind == ArtifactKind.UPDATE_BUNDLE]
        if len(bundles) != 1:
            raise ValueError(
                f"A recipe needs exactly one update_bundle rule, found {len(bundles)}"
            )
        return self

    def classify(self, file_name: str) -> ArtifactRule | None:
        """Return the first rule matching *file_name*, or None."""
        for rule in self.rules:
            if rule.matches(file_name):
                return rule
        return None


class TargetDescriptor(BaseModel):
    """One OS/architecture/category build target and its behavior flags."""

    model_config = ConfigDict(frozen=True)

    os: TargetOS
    arch: str  # "x86_64" | "aarch64"
    category: str  # "all" | "amd64" | "aarch64"
    recipe: BuildRecipe

    portable: bool = False
    native_target: str | None = None  # rust target triple to add first
    clean_stale_assets: bool = False
    prepare_args: tuple[str, ...] = ()
    check_args: tuple[str, ...] = ()
    build_args: tuple[str, ...] = ()
    asset_suffix: str = ""
    required: bool = True

    @model_validator(mode="after")
    def _portable_rule_needs_flag(self) -> TargetDescriptor:
        has_rule = any(r.kind == ArtifactKind.PORTABLE for r in self.recipe.rules)
        if has_rule and not self.portable:
            raise ValueError(f"{self.label}: recipe expects a portable artifact but portable=False")
        return self

    @property
    def identity(self) -> tuple[str, str, str]:
        return (self.os.value, self.arch, self.category)

    @property
    def key(self) -> str:
        """Update-client platform key, e.g. ``darwin-aarch64``."""
        return f"{_PLATFORM_NAMES[self.os]}-{self.arch}"

    @property
    def label(self) -> str:
        return f"{self.os.value}/{self.arch}/{self.category}"

    def asset_name(self, file_name: str) -> str:
        """Published name for a built file.

        With an ``asset_suffix`` the suffix goes in front of the extension
        the matching recipe rule covers, so versioned names and compound
        extensions stay intact: ``App_1.2.0.app.tar.gz`` becomes
        ``App_1.2.0_aarch64.app.tar.gz``.  Files no rule matches take the
        suffix before their last extension.
        """
        if not self.asset_suffix:
            return file_name
        rule = self.recipe.classify(file_name)
        extension = rule.extension if rule is not None else ""
        if not extension or not file_name.endswith(extension) or file_name == extension:
            stem, dot, last = file_name.rpartition(".")
            extension = dot + last if stem else ""
        stem = file_name[: len(file_name) - len(extension)]
        return f"{stem}_{self.asset_suffix}{extension}"
