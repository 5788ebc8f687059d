"""Update manifest generator.

Runs only after the build matrix has joined.  Refuses to build a manifest
while any required target failed: a partial manifest would make the update
client advertise platforms that have no valid artifact.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from shipwright.core.publisher import ArtifactPublisher
from shipwright.models.artifacts import PublishedAssetRecord
from shipwright.models.manifest import PlatformEntry, UpdateManifest
from shipwright.models.outcomes import TargetOutcome
from shipwright.models.release import ReleaseContext

logger = logging.getLogger(__name__)


class ManifestPreconditionError(RuntimeError):
    """Required targets did not succeed; no manifest may be produced."""

    def __init__(self, message: str, failed: list[TargetOutcome] | None = None) -> None:
        super().__init__(message)
        self.failed = failed or []


class UpdateManifestGenerator:
    """Builds and publishes the per-version update manifest.

    Parameters
    ----------
    publisher:
        Used to upload the manifest (overwriting any previous one).
    asset_name:
        Manifest asset name on the release host.
    """

    def __init__(self, publisher: ArtifactPublisher, *, asset_name: str = "latest.json") -> None:
        self._publisher = publisher
        self.asset_name = asset_name

    def build(
        self, context: ReleaseContext, outcomes: Iterable[TargetOutcome]
    ) -> UpdateManifest:
        """Derive the manifest from the joined build outcomes.

        Raises
        ------
        ManifestPreconditionError
            If a required target failed, or two targets claim the same
            platform key.
        """
        outcomes = list(outcomes)
        failed_required = [o for o in outcomes if not o.succeeded and o.target.required]
        if failed_required:
            labels = ", ".join(
                f"{o.target.label} ({o.failed_step.value if o.failed_step else 'unknown'})"
                for o in failed_required
            )
            raise ManifestPreconditionError(
                f"Release {context.tag} is incomplete; failed targets: {labels}",
                failed_required,
            )

        for outcome in outcomes:
            if not outcome.succeeded:
                logger.warning(
                    "Optional target %s failed; omitted from the manifest", outcome.target.label
                )

        platforms: dict[str, PlatformEntry] = {}
        for outcome in outcomes:
            if not outcome.succeeded:
                continue
            record = outcome.update_record
            if record is None:
                raise ManifestPreconditionError(
                    f"{outcome.target.label} succeeded without an update bundle record"
                )
            key = outcome.target.key
            if key in platforms:
                raise ManifestPreconditionError(f"Duplicate platform key {key} in manifest")
            platforms[key] = self._entry(record)

        return UpdateManifest(
            version=context.version,
            notes=context.body,
            pub_date=context.published_at,
            platforms=platforms,
        )

    @staticmethod
    def _entry(record: PublishedAssetRecord) -> PlatformEntry:
        return PlatformEntry(
            url=record.download_url,
            signature=record.signature or "",
            size=record.size,
        )

    @staticmethod
    def render(manifest: UpdateManifest) -> bytes:
        """Byte-identical output for identical manifests."""
        return manifest.to_bytes()

    def publish(self, context: ReleaseContext, manifest: UpdateManifest) -> PublishedAssetRecord:
        """Upload the manifest, replacing any earlier one for this release."""
        record = self._publisher.publish_bytes(
            self.asset_name,
            self.render(manifest),
            context,
            content_type="application/json",
        )
        logger.info(
            "Published update manifest %s for %s with %d platform(s)",
            self.asset_name, manifest.version, len(manifest.platforms),
        )
        return record
