"""Per-target outcomes, notification results and the final release report."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict

from shipwright.models.artifacts import BuildArtifact, PublishedAssetRecord
from shipwright.models.manifest import UpdateManifest
from shipwright.models.release import ReleaseContext
from shipwright.models.targets import TargetDescriptor


class BuildStep(str, Enum):
    """Steps of a target build job, in execution order."""

    CLEANUP = "cleanup"
    ENVIRONMENT = "environment"
    NATIVE_TARGET = "native_target"
    DEPENDENCIES = "dependencies"
    PREPARE = "prepare"
    BUILD = "build"
    PORTABLE = "portable"
    COLLECT = "collect"
    PUBLISH = "publish"


class TargetOutcome(BaseModel):
    """Terminal outcome of one target build job.

    A failed outcome never carries artifacts or records: a target's output
    is all-or-nothing.
    """

    model_config = ConfigDict(frozen=True)

    target: TargetDescriptor
    succeeded: bool
    artifacts: tuple[BuildArtifact, ...] = ()
    records: tuple[PublishedAssetRecord, ...] = ()
    update_record: PublishedAssetRecord | None = None
    failed_step: BuildStep | None = None
    error: str | None = None
    duration_seconds: float = 0.0

    @classmethod
    def success(
        cls,
        target: TargetDescriptor,
        artifacts: list[BuildArtifact],
        records: list[PublishedAssetRecord],
        update_record: PublishedAssetRecord,
        duration_seconds: float = 0.0,
    ) -> TargetOutcome:
        return cls(
            target=target,
            succeeded=True,
            artifacts=tuple(artifacts),
            records=tuple(records),
            update_record=update_record,
            duration_seconds=duration_seconds,
        )

    @classmethod
    def failure(
        cls,
        target: TargetDescriptor,
        step: BuildStep | None,
        error: str,
        duration_seconds: float = 0.0,
    ) -> TargetOutcome:
        return cls(
            target=target,
            succeeded=False,
            failed_step=step,
            error=error,
            duration_seconds=duration_seconds,
        )


class NotificationMessage(BaseModel):
    """Rendered announcement for one channel; one per channel per release."""

    model_config = ConfigDict(frozen=True)

    channel: str
    text: str


class DeliveryResult(BaseModel):
    """Result of the single delivery attempt on a channel."""

    model_config = ConfigDict(frozen=True)

    channel: str
    delivered: bool
    error: str | None = None


class PipelineStatus(str, Enum):
    """Final status of a release run.

    ``PARTIALLY_COMPLETE`` means targets failed and the manifest was
    withheld; ``ABORTED`` means infrastructure (the release host) failed.
    """

    COMPLETE = "complete"
    PARTIALLY_COMPLETE = "partially_complete"
    ABORTED = "aborted"


_EXIT_CODES: dict[PipelineStatus, int] = {
    PipelineStatus.COMPLETE: 0,
    PipelineStatus.ABORTED: 1,
    PipelineStatus.PARTIALLY_COMPLETE: 2,
}


class ReleaseReport(BaseModel):
    """Everything a release run produced, for rendering and exit status."""

    model_config = ConfigDict(frozen=True)

    context: ReleaseContext
    status: PipelineStatus
    outcomes: tuple[TargetOutcome, ...] = ()
    manifest: UpdateManifest | None = None
    manifest_record: PublishedAssetRecord | None = None
    deliveries: tuple[DeliveryResult, ...] = ()
    reason: str | None = None

    @property
    def failed_targets(self) -> list[TargetOutcome]:
        return [o for o in self.outcomes if not o.succeeded]

    @property
    def records(self) -> list[PublishedAssetRecord]:
        return [r for o in self.outcomes for r in o.records]

    @property
    def exit_code(self) -> int:
        return _EXIT_CODES[self.status]
