"""Build matrix coordinator — fans target jobs out and joins them.

One ``TargetBuildJob`` per descriptor runs on a worker thread; the heavy
work happens in the builder's child processes.  ``join`` is the barrier
between the build phase and the manifest phase: it returns only once every
job has reported a terminal outcome.
"""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from pathlib import Path

from shipwright.builders import Builder
from shipwright.core.build_job import TargetBuildJob
from shipwright.core.lifecycle import AssetLifecycleManager, CleanupGate
from shipwright.core.publisher import ArtifactPublisher
from shipwright.models.outcomes import TargetOutcome
from shipwright.models.release import ReleaseContext
from shipwright.models.targets import TargetDescriptor

logger = logging.getLogger(__name__)


class CoordinatorStateError(RuntimeError):
    """Raised on ``join`` without ``start`` or on a second ``start``."""


def validate_targets(targets: tuple[TargetDescriptor, ...]) -> None:
    """Reject an empty or duplicated descriptor set, or one with two cleaners."""
    if not targets:
        raise ValueError("At least one build target is required")
    identities = [t.identity for t in targets]
    if len(set(identities)) != len(identities):
        raise ValueError("Duplicate target descriptors in the build matrix")
    cleaners = [t for t in targets if t.clean_stale_assets]
    if len(cleaners) > 1:
        raise ValueError(
            "Only one target may clean stale assets, got "
            + ", ".join(t.label for t in cleaners)
        )


class BuildMatrixCoordinator:
    """Runs every target's build job concurrently.

    Parameters
    ----------
    targets:
        The descriptor set; at most one may set ``clean_stale_assets``.
    builder, publisher, lifecycle:
        Collaborators handed to each job.
    workdir:
        Parent of the per-target scratch directories.
    max_workers:
        Upper bound on concurrently running jobs.
    job_timeout_seconds:
        Execution-time bound of each job.
    """

    def __init__(
        self,
        targets: tuple[TargetDescriptor, ...],
        builder: Builder,
        publisher: ArtifactPublisher,
        lifecycle: AssetLifecycleManager,
        *,
        workdir: Path,
        max_workers: int = 4,
        job_timeout_seconds: float = 3600.0,
    ) -> None:
        validate_targets(targets)

        self.targets = tuple(targets)
        self._builder = builder
        self._publisher = publisher
        self._lifecycle = lifecycle
        self._workdir = Path(workdir)
        self._max_workers = max(1, min(max_workers, len(self.targets)))
        self._job_timeout = job_timeout_seconds

        self.gate = CleanupGate()
        self._executor: ThreadPoolExecutor | None = None
        self._futures: dict[Future[TargetOutcome], TargetDescriptor] = {}

    def _make_job(self, target: TargetDescriptor, context: ReleaseContext) -> TargetBuildJob:
        slug = f"{target.os.value}-{target.arch}-{target.category}"
        return TargetBuildJob(
            target,
            context,
            self._builder,
            self._publisher,
            self.gate,
            lifecycle=self._lifecycle if target.clean_stale_assets else None,
            workdir=self._workdir / slug,
            timeout_seconds=self._job_timeout,
        )

    def _run_target(self, target: TargetDescriptor, context: ReleaseContext) -> TargetOutcome:
        try:
            job = self._make_job(target, context)
        except Exception as exc:
            if target.clean_stale_assets:
                self.gate.fail(exc)
            raise
        return job.run()

    # ------------------------------------------------------------------
    # Fan-out / fan-in
    # ------------------------------------------------------------------

    def start(self, context: ReleaseContext) -> None:
        """Launch one job per target without waiting for them."""
        if self._executor is not None:
            raise CoordinatorStateError("Coordinator already started")

        if not any(t.clean_stale_assets for t in self.targets):
            logger.warning(
                "No target is designated to clean stale assets; uploads will overwrite in place"
            )
            self.gate.skip()

        # The cleaner goes first so the gate never waits on a queued job.
        ordered = sorted(self.targets, key=lambda t: not t.clean_stale_assets)
        self._executor = ThreadPoolExecutor(
            max_workers=self._max_workers, thread_name_prefix="shipwright-build"
        )
        self._futures = {
            self._executor.submit(self._run_target, target, context): target
            for target in ordered
        }
        logger.info(
            "Started %d build job(s) for %s (max %d concurrent)",
            len(ordered), context.tag, self._max_workers,
        )

    def join(self) -> list[TargetOutcome]:
        """Block until every job concluded; outcomes in descriptor order."""
        if self._executor is None:
            raise CoordinatorStateError("join() called before start()")

        outcomes: dict[tuple[str, str, str], TargetOutcome] = {}
        try:
            for future in as_completed(self._futures):
                target = self._futures[future]
                try:
                    outcome = future.result()
                except Exception as exc:  # noqa: BLE001
                    logger.error("%s: job crashed: %s", target.label, exc)
                    outcome = TargetOutcome.failure(target, None, f"job crashed: {exc}")
                outcomes[target.identity] = outcome
        finally:
            self._executor.shutdown(wait=True)

        succeeded = sum(1 for o in outcomes.values() if o.succeeded)
        logger.info("Build matrix finished: %d/%d target(s) succeeded", succeeded, len(outcomes))
        return [outcomes[t.identity] for t in self.targets]

    def run(self, context: ReleaseContext) -> list[TargetOutcome]:
        """``start`` followed by ``join``."""
        self.start(context)
        return self.join()
