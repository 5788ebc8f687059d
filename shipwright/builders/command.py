"""Subprocess-driven builder for the Tauri desktop client.

Runs the project's own tooling (``rustup``, ``pnpm``) for one target at a
time.  Every job works in its own copy of the checkout with its own cargo
target directory, both under the job's working directory, so concurrent
targets never share installed dependencies or build output.

Command templates are argv lists; ``{native_target}`` is substituted from
the descriptor and the descriptor's ``check_args`` / ``prepare_args`` /
``build_args`` are appended to the matching step.  Output roots may also use
``{target_dir}``, the job's cargo target directory.
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
import time
from pathlib import Path

from pydantic import BaseModel, ConfigDict

from shipwright.builders import BuilderError, BuilderTimeoutError
from shipwright.models.targets import TargetDescriptor

logger = logging.getLogger(__name__)

_OUTPUT_TAIL_CHARS = 4000
# Filesystems with coarse timestamps can round an mtime below the step start.
_MTIME_SLACK_SECONDS = 2.0

CHECKOUT_DIR = "checkout"
CARGO_TARGET_DIR = "cargo-target"


class CommandSet(BaseModel):
    """Argv templates for each builder step."""

    model_config = ConfigDict(frozen=True)

    environment: tuple[tuple[str, ...], ...] = (
        ("rustup", "show", "active-toolchain"),
        ("pnpm", "--version"),
    )
    native_target: tuple[str, ...] = ("rustup", "target", "add", "{native_target}")
    install: tuple[str, ...] = ("pnpm", "i")
    check: tuple[str, ...] = ("pnpm", "check")
    prepare: tuple[str, ...] = ("pnpm", "prepare:release")
    build: tuple[str, ...] = (
        "pnpm", "tauri", "build", "-f", "default-meta",
        "-c", "./backend/tauri/tauri.conf.json",
    )
    portable: tuple[str, ...] = ("pnpm", "portable")
    portable_env: tuple[tuple[str, str], ...] = (("VITE_WIN_PORTABLE", "1"),)

    # Where produced files appear; relative roots resolve against the checkout.
    bundle_dirs: tuple[str, ...] = ("{target_dir}/release/bundle",)
    native_bundle_dirs: tuple[str, ...] = ("{target_dir}/{native_target}/release/bundle",)
    portable_dirs: tuple[str, ...] = ("{target_dir}/release",)
    portable_glob: str = "*portable*.zip"

    # Left out when copying the checkout; every job installs and builds afresh.
    checkout_ignore: tuple[str, ...] = ("node_modules", "target")


class CommandBuilder:
    """Builder backend that shells out to the project's toolchain.

    Parameters
    ----------
    project_dir:
        Checkout of the product repository.  It is copied, never built in.
    commands:
        Step templates; defaults mirror the product's release workflow.
    env:
        Extra environment for every command (signing secrets, tokens).
    """

    def __init__(
        self,
        project_dir: Path,
        commands: CommandSet | None = None,
        env: dict[str, str] | None = None,
    ) -> None:
        self._project = Path(project_dir)
        self._commands = commands or CommandSet()
        self._env = dict(env or {})

    # ------------------------------------------------------------------
    # Per-job workspace
    # ------------------------------------------------------------------

    def checkout(self, workdir: Path) -> Path:
        """Return the job's private copy of the project, creating it once."""
        path = Path(workdir) / CHECKOUT_DIR
        if not path.is_dir():
            logger.info("Copying %s into %s", self._project, path)
            try:
                shutil.copytree(
                    self._project,
                    path,
                    symlinks=True,
                    ignore=shutil.ignore_patterns(*self._commands.checkout_ignore),
                )
            except (OSError, shutil.Error) as exc:
                raise BuilderError("checkout", f"Cannot copy {self._project}: {exc}") from exc
        return path

    @staticmethod
    def target_dir(workdir: Path) -> Path:
        return Path(workdir) / CARGO_TARGET_DIR

    # ------------------------------------------------------------------
    # Process execution
    # ------------------------------------------------------------------

    def _render(self, template: tuple[str, ...], target: TargetDescriptor) -> list[str]:
        return [part.format(native_target=target.native_target or "") for part in template]

    def _run(
        self,
        step: str,
        argv: list[str],
        workdir: Path,
        timeout: float,
        extra_env: dict[str, str] | None = None,
    ) -> str:
        if timeout <= 0:
            raise BuilderTimeoutError(step, f"No time left to run {argv[0]}")
        cwd = self.checkout(workdir)
        env = {
            **os.environ,
            **self._env,
            "CARGO_TARGET_DIR": str(self.target_dir(workdir)),
            **(extra_env or {}),
        }
        logger.info("[%s] %s (in %s)", step, " ".join(argv), cwd)
        try:
            result = subprocess.run(
                argv,
                cwd=cwd,
                env=env,
                capture_output=True,
                text=True,
                timeout=timeout,
            )
        except subprocess.TimeoutExpired as exc:
            raise BuilderTimeoutError(
                step, f"{argv[0]} exceeded {timeout:.0f}s", output=str(exc.output or "")
            ) from exc
        except OSError as exc:
            raise BuilderError(step, f"Cannot run {argv[0]}: {exc}") from exc

        output = (result.stdout or "") + (result.stderr or "")
        if result.returncode != 0:
            raise BuilderError(
                step,
                f"{' '.join(argv)} exited with status {result.returncode}",
                returncode=result.returncode,
                output=output[-_OUTPUT_TAIL_CHARS:],
            )
        return output

    def _collect(
        self,
        roots: tuple[str, ...],
        pattern: str,
        since: float,
        target: TargetDescriptor,
        workdir: Path,
    ) -> list[Path]:
        """Copy files modified after *since* from *roots* into *workdir*."""
        out_dir = workdir / "out"
        out_dir.mkdir(parents=True, exist_ok=True)
        checkout = self.checkout(workdir)
        collected: list[Path] = []
        for root in roots:
            base = checkout / root.format(
                native_target=target.native_target or "",
                target_dir=self.target_dir(workdir),
            )
            if not base.is_dir():
                continue
            for path in sorted(base.rglob(pattern)):
                if not path.is_file() or path.stat().st_mtime < since - _MTIME_SLACK_SECONDS:
                    continue
                dest = out_dir / path.name
                if dest in collected:
                    raise BuilderError(
                        "collect", f"Two produced files share the name {path.name!r}"
                    )
                shutil.copy2(path, dest)
                collected.append(dest)
        return collected

    # ------------------------------------------------------------------
    # Builder protocol
    # ------------------------------------------------------------------

    def check_environment(self, target: TargetDescriptor, workdir: Path, timeout: float) -> None:
        deadline = time.monotonic() + timeout
        for template in self._commands.environment:
            self._run("environment", self._render(template, target), workdir, deadline - time.monotonic())

    def add_native_target(self, target: TargetDescriptor, workdir: Path, timeout: float) -> None:
        if not target.native_target:
            return
        self._run("native_target", self._render(self._commands.native_target, target), workdir, timeout)

    def install_dependencies(self, target: TargetDescriptor, workdir: Path, timeout: float) -> None:
        deadline = time.monotonic() + timeout
        self._run("dependencies", self._render(self._commands.install, target), workdir, timeout)
        check = self._render(self._commands.check, target) + list(target.check_args)
        self._run("dependencies", check, workdir, deadline - time.monotonic())

    def prepare(self, target: TargetDescriptor, workdir: Path, timeout: float) -> None:
        argv = self._render(self._commands.prepare, target) + list(target.prepare_args)
        self._run("prepare", argv, workdir, timeout)

    def build(self, target: TargetDescriptor, workdir: Path, timeout: float) -> list[Path]:
        # Filesystem mtimes are wall-clock, so the cut-off is too.
        started = time.time()
        argv = self._render(self._commands.build, target) + list(target.build_args)
        self._run("build", argv, workdir, timeout)
        roots = self._commands.native_bundle_dirs if target.native_target else self._commands.bundle_dirs
        return self._collect(roots, "*", started, target, workdir)

    def build_portable(self, target: TargetDescriptor, workdir: Path, timeout: float) -> list[Path]:
        started = time.time()
        self._run(
            "portable",
            self._render(self._commands.portable, target),
            workdir,
            timeout,
            extra_env=dict(self._commands.portable_env),
        )
        return self._collect(
            self._commands.portable_dirs, self._commands.portable_glob, started, target, workdir
        )
