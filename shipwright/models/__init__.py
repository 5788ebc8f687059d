"""Shipwright data models — all Pydantic v2, all frozen (immutable)."""

from shipwright.models.artifacts import BuildArtifact, PublishedAssetRecord, RemoteAsset
from shipwright.models.manifest import PlatformEntry, UpdateManifest
from shipwright.models.outcomes import (
    BuildStep,
    DeliveryResult,
    NotificationMessage,
    PipelineStatus,
    ReleaseReport,
    TargetOutcome,
)
from shipwright.models.release import ReleaseContext, ReleaseEvent, ReleaseEventError
from shipwright.models.targets import (
    ArtifactKind,
    ArtifactRule,
    BuildRecipe,
    TargetDescriptor,
    TargetOS,
)

__all__ = [
    # release
    "ReleaseEvent",
    "ReleaseEventError",
    "ReleaseContext",
    # targets
    "TargetOS",
    "ArtifactKind",
    "ArtifactRule",
    "BuildRecipe",
    "TargetDescriptor",
    # artifacts
    "BuildArtifact",
    "PublishedAssetRecord",
    "RemoteAsset",
    # manifest
    "PlatformEntry",
    "UpdateManifest",
    # outcomes
    "BuildStep",
    "TargetOutcome",
    "NotificationMessage",
    "DeliveryResult",
    "PipelineStatus",
    "ReleaseReport",
]
