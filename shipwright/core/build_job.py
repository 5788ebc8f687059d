"""Target build job — builds, collects and publishes one target's artifacts.

The step plan is derived from the descriptor's flags, so every target runs
the same code:

    cleanup? -> environment -> native_target? -> dependencies -> prepare?
        -> build -> portable? -> collect -> publish

Any exception ends the job with a failed ``TargetOutcome`` naming the step;
nothing the job produced before the failure is surfaced.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path

from shipwright.builders import Builder
from shipwright.core.lifecycle import AssetLifecycleManager, CleanupGate, CleanupGateError
from shipwright.core.publisher import ArtifactPublisher
from shipwright.models.artifacts import BuildArtifact, PublishedAssetRecord
from shipwright.models.outcomes import BuildStep, TargetOutcome
from shipwright.models.release import ReleaseContext
from shipwright.models.targets import ArtifactKind, TargetDescriptor

logger = logging.getLogger(__name__)

_SIGNATURE_SUFFIX = ".sig"


class JobTimeoutError(RuntimeError):
    """The job ran out of its execution-time budget."""


class ArtifactCollectionError(RuntimeError):
    """Produced files do not satisfy the target's recipe."""


def plan_steps(target: TargetDescriptor) -> list[BuildStep]:
    """Return the ordered steps *target* runs."""
    steps: list[BuildStep] = []
    if target.clean_stale_assets:
        steps.append(BuildStep.CLEANUP)
    steps.append(BuildStep.ENVIRONMENT)
    if target.native_target:
        steps.append(BuildStep.NATIVE_TARGET)
    steps.append(BuildStep.DEPENDENCIES)
    if target.prepare_args:
        steps.append(BuildStep.PREPARE)
    steps.append(BuildStep.BUILD)
    if target.portable:
        steps.append(BuildStep.PORTABLE)
    steps.extend([BuildStep.COLLECT, BuildStep.PUBLISH])
    return steps


def collect_artifacts(target: TargetDescriptor, files: list[Path]) -> list[BuildArtifact]:
    """Classify produced files against the target's recipe.

    Files ending in ``.sig`` are treated as builder-made detached signatures
    of their sibling.  Every recipe rule must match at least one file and
    exactly one update bundle must be present.
    """
    by_name: dict[str, Path] = {}
    for path in files:
        by_name.setdefault(path.name, path)

    artifacts: list[BuildArtifact] = []
    matched_rules: set[int] = set()
    for name in sorted(by_name):
        if name.endswith(_SIGNATURE_SUFFIX):
            continue
        rule = target.recipe.classify(name)
        if rule is None:
            logger.debug("%s: ignoring unrecognized file %s", target.label, name)
            continue
        matched_rules.add(target.recipe.rules.index(rule))

        signature = None
        sig_path = by_name.get(name + _SIGNATURE_SUFFIX)
        if sig_path is not None:
            signature = sig_path.read_text(encoding="utf-8").strip() or None

        artifacts.append(
            BuildArtifact(
                target=target,
                path=by_name[name],
                kind=rule.kind,
                media_type=rule.media_type,
                signature=signature,
            )
        )

    missing = [
        rule.pattern
        for index, rule in enumerate(target.recipe.rules)
        if index not in matched_rules
    ]
    if missing:
        raise ArtifactCollectionError(
            f"{target.label}: no file produced for {', '.join(missing)}"
        )

    bundles = [a for a in artifacts if a.kind == ArtifactKind.UPDATE_BUNDLE]
    if len(bundles) != 1:
        raise ArtifactCollectionError(
            f"{target.label}: expected one update bundle, found "
            f"{', '.join(a.name for a in bundles)}"
        )
    return artifacts


class TargetBuildJob:
    """Runs the full step plan for one target.

    Parameters
    ----------
    target:
        The descriptor to build.
    context:
        Read-only release context.
    builder:
        Builder capability.
    publisher:
        Artifact publisher.
    gate:
        Shared stale-asset cleanup gate for the run.
    lifecycle:
        Required when ``target.clean_stale_assets`` is set.
    workdir:
        Private scratch directory for this job.
    timeout_seconds:
        Execution-time bound for the whole job.
    """

    def __init__(
        self,
        target: TargetDescriptor,
        context: ReleaseContext,
        builder: Builder,
        publisher: ArtifactPublisher,
        gate: CleanupGate,
        *,
        lifecycle: AssetLifecycleManager | None = None,
        workdir: Path,
        timeout_seconds: float = 3600.0,
    ) -> None:
        if target.clean_stale_assets and lifecycle is None:
            raise ValueError(f"{target.label} cleans stale assets but no lifecycle manager given")
        self.target = target
        self._context = context
        self._builder = builder
        self._publisher = publisher
        self._gate = gate
        self._lifecycle = lifecycle
        self._workdir = Path(workdir)
        self._timeout = timeout_seconds
        self._deadline = 0.0
        self._files: list[Path] = []
        self._artifacts: list[BuildArtifact] = []
        self._records: list[PublishedAssetRecord] = []
        self._update_record: PublishedAssetRecord | None = None

    # ------------------------------------------------------------------
    # Budget
    # ------------------------------------------------------------------

    def _remaining(self) -> float:
        remaining = self._deadline - time.monotonic()
        if remaining <= 0:
            raise JobTimeoutError(
                f"{self.target.label} exceeded its {self._timeout:.0f}s execution bound"
            )
        return remaining

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def _cleanup(self) -> None:
        lifecycle = self._lifecycle
        if lifecycle is None:
            raise CleanupGateError(f"{self.target.label} has no lifecycle manager")
        try:
            deleted = lifecycle.purge(self._context)
        except Exception as exc:
            self._gate.fail(exc)
            raise
        self._gate.open(deleted)

    def _publish(self) -> None:
        self._gate.wait(self._remaining())
        for artifact in self._artifacts:
            self._remaining()
            record = self._publisher.publish(artifact, self._context)
            self._records.append(record)
            if artifact.kind == ArtifactKind.UPDATE_BUNDLE:
                self._update_record = record
        if self._update_record is None:
            raise ArtifactCollectionError(f"{self.target.label}: no update bundle was published")

    def _run_step(self, step: BuildStep) -> None:
        target, workdir = self.target, self._workdir
        if step is BuildStep.CLEANUP:
            self._cleanup()
        elif step is BuildStep.ENVIRONMENT:
            self._builder.check_environment(target, workdir, self._remaining())
        elif step is BuildStep.NATIVE_TARGET:
            self._builder.add_native_target(target, workdir, self._remaining())
        elif step is BuildStep.DEPENDENCIES:
            self._builder.install_dependencies(target, workdir, self._remaining())
        elif step is BuildStep.PREPARE:
            self._builder.prepare(target, workdir, self._remaining())
        elif step is BuildStep.BUILD:
            self._files.extend(self._builder.build(target, workdir, self._remaining()))
        elif step is BuildStep.PORTABLE:
            self._files.extend(self._builder.build_portable(target, workdir, self._remaining()))
        elif step is BuildStep.COLLECT:
            self._artifacts = collect_artifacts(target, self._files)
        elif step is BuildStep.PUBLISH:
            self._publish()

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    def run(self) -> TargetOutcome:
        """Run every planned step; never raises."""
        started = time.monotonic()
        self._deadline = started + self._timeout
        self._workdir.mkdir(parents=True, exist_ok=True)
        step = BuildStep.ENVIRONMENT
        logger.info("%s: build job started", self.target.label)

        try:
            for step in plan_steps(self.target):
                logger.debug("%s: step %s", self.target.label, step.value)
                self._run_step(step)
        except Exception as exc:  # noqa: BLE001
            duration = time.monotonic() - started
            detail = str(exc)
            output = getattr(exc, "output", "")
            if output:
                detail = f"{detail}\n{output}"
            logger.error(
                "%s: failed at step %s after %.1fs: %s",
                self.target.label, step.value, duration, exc,
            )
            return TargetOutcome.failure(self.target, step, detail, duration)
        finally:
            if self.target.clean_stale_assets and not self._gate.resolved:
                self._gate.fail(CleanupGateError(f"{self.target.label} ended before cleanup"))

        duration = time.monotonic() - started
        logger.info(
            "%s: published %d artifact(s) in %.1fs",
            self.target.label, len(self._records), duration,
        )
        return TargetOutcome.success(
            self.target, self._artifacts, self._records, self._update_record, duration
        )
