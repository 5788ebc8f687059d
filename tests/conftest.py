"""Shared test fixtures for Shipwright."""

from __future__ import annotations

import threading
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from shipwright.bridge.crypto_bridge import ReleaseSigner, generate_keypair
from shipwright.builders import BuilderError
from shipwright.core.publisher import ArtifactPublisher
from shipwright.hosts.local import LocalReleaseHost
from shipwright.models.release import ReleaseContext
from shipwright.models.targets import (
    ArtifactKind,
    ArtifactRule,
    BuildRecipe,
    TargetDescriptor,
    TargetOS,
)


@pytest.fixture
def keypair() -> tuple[str, str]:
    """Provide a fresh ``(private_hex, public_hex)`` signing keypair."""
    return generate_keypair()


@pytest.fixture
def signer(keypair: tuple[str, str]) -> ReleaseSigner:
    return ReleaseSigner(keypair[0])


@pytest.fixture
def host(tmp_path: Path) -> LocalReleaseHost:
    """Provide a filesystem release host in a temp directory."""
    return LocalReleaseHost(tmp_path / "host")


@pytest.fixture
def publisher(host: LocalReleaseHost, signer: ReleaseSigner) -> ArtifactPublisher:
    """Publisher with no backoff delay."""
    return ArtifactPublisher(host, signer, max_attempts=3, base_delay=0.0, max_delay=0.0)


@pytest.fixture
def context() -> ReleaseContext:
    """Provide a deterministic release context."""
    return ReleaseContext(release_id="42", tag="v1.2.0", body="Bug fixes.")


# ---------------------------------------------------------------------------
# Target factories
# ---------------------------------------------------------------------------


def simple_recipe(extension: str = "tar.gz") -> BuildRecipe:
    """A recipe with a single update bundle rule."""
    return BuildRecipe(
        rules=(ArtifactRule(pattern=f"*.{extension}", kind=ArtifactKind.UPDATE_BUNDLE),)
    )


@pytest.fixture
def make_target() -> Callable[..., TargetDescriptor]:
    """Factory fixture: build a TargetDescriptor with sensible defaults."""

    def _factory(
        os: TargetOS = TargetOS.LINUX,
        arch: str = "x86_64",
        category: str = "all",
        **overrides: Any,
    ) -> TargetDescriptor:
        defaults: dict[str, Any] = {
            "os": os,
            "arch": arch,
            "category": category,
            "recipe": simple_recipe(),
        }
        defaults.update(overrides)
        return TargetDescriptor(**defaults)

    return _factory


# ---------------------------------------------------------------------------
# Fake collaborators
# ---------------------------------------------------------------------------


class FakeBuilder:
    """Builder that writes small files instead of running a toolchain.

    Parameters
    ----------
    files:
        Per target label, the file names ``build`` produces.  Defaults to one
        ``app_<key>.tar.gz``.
    fail:
        Per target label, the builder step that raises ``BuilderError``.
    """

    def __init__(
        self,
        files: dict[str, list[str]] | None = None,
        fail: dict[str, str] | None = None,
    ) -> None:
        self._files = files or {}
        self._fail = fail or {}
        self._lock = threading.Lock()
        self.calls: list[tuple[str, str]] = []

    def _record(self, step: str, target: TargetDescriptor) -> None:
        with self._lock:
            self.calls.append((target.label, step))
        if self._fail.get(target.label) == step:
            raise BuilderError(step, f"{step} failed for {target.label}", returncode=1)

    def _write(self, target: TargetDescriptor, workdir: Path, names: list[str]) -> list[Path]:
        out = workdir / "out"
        out.mkdir(parents=True, exist_ok=True)
        paths = []
        for name in names:
            path = out / name
            path.write_bytes(f"{target.key}:{name}".encode())
            paths.append(path)
        return paths

    def steps_for(self, label: str) -> list[str]:
        return [step for lbl, step in self.calls if lbl == label]

    def check_environment(self, target, workdir, timeout):
        self._record("environment", target)

    def add_native_target(self, target, workdir, timeout):
        self._record("native_target", target)

    def install_dependencies(self, target, workdir, timeout):
        self._record("dependencies", target)

    def prepare(self, target, workdir, timeout):
        self._record("prepare", target)

    def build(self, target, workdir, timeout):
        self._record("build", target)
        names = self._files.get(target.label, [f"app_{target.key}.tar.gz"])
        return self._write(target, workdir, names)

    def build_portable(self, target, workdir, timeout):
        self._record("portable", target)
        return self._write(target, workdir, [f"app_{target.key}_portable.zip"])


class RecordingChannel:
    """Notification channel that records messages, or fails on demand."""

    def __init__(self, name: str, *, fail: bool = False) -> None:
        self._name = name
        self._fail = fail
        self.sent: list[str] = []

    @property
    def channel_name(self) -> str:
        return self._name

    def send(self, text: str) -> None:
        if self._fail:
            raise RuntimeError(f"{self._name} is down")
        self.sent.append(text)


@pytest.fixture
def fake_builder() -> FakeBuilder:
    return FakeBuilder()


@pytest.fixture
def make_builder() -> Callable[..., FakeBuilder]:
    """Factory fixture: ``make_builder(files=..., fail=...)``."""
    return FakeBuilder


@pytest.fixture
def make_channel() -> Callable[..., RecordingChannel]:
    """Factory fixture: ``make_channel("telegram", fail=False)``."""
    return RecordingChannel
