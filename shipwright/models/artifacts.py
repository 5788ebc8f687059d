"""Built and published artifact models."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict

from shipwright.models.targets import ArtifactKind, TargetDescriptor


class BuildArtifact(BaseModel):
    """A file produced by a target build job.

    Immutable once created; ownership passes to the publisher for upload.
    ``signature`` is set when the builder already signed the file.
    """

    model_config = ConfigDict(frozen=True)

    target: TargetDescriptor
    path: Path
    kind: ArtifactKind
    media_type: str = "application/octet-stream"
    signature: str | None = None

    @property
    def name(self) -> str:
        return self.path.name

    @property
    def asset_name(self) -> str:
        """Name this artifact is published under on the release host."""
        return self.target.asset_name(self.path.name)


class PublishedAssetRecord(BaseModel):
    """Local view of an asset just uploaded to the release host."""

    model_config = ConfigDict(frozen=True)

    name: str
    download_url: str
    checksum: str  # "sha256:<hex>"
    size: int
    signature: str | None = None


class RemoteAsset(BaseModel):
    """An asset as listed by the release host."""

    model_config = ConfigDict(frozen=True)

    asset_id: str
    name: str
    download_url: str = ""
    size: int = 0
