"""Release orchestrator — the central coordinator for a release run.

Wires the release host, publisher, asset lifecycle manager, build matrix
coordinator, manifest generator and notification fanout into one run:

    preflight -> build matrix (barrier) -> manifest -> announce

Status rules
------------
- ``complete``: every required target succeeded and the manifest is live.
- ``partially_complete``: a required target failed; manifest and
  announcements were withheld.
- ``aborted``: the release host could not be used (preflight, stale-asset
  cleanup or manifest upload failed).
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Iterable
from datetime import datetime, timezone
from pathlib import Path

from shipwright.bridge.crypto_bridge import ReleaseSigner
from shipwright.builders import Builder
from shipwright.channels import NotificationChannel
from shipwright.channels._formatting import AnnouncementRenderer
from shipwright.config import ProdConfig
from shipwright.core.coordinator import BuildMatrixCoordinator, validate_targets
from shipwright.core.fanout import NotificationFanout
from shipwright.core.lifecycle import AssetLifecycleManager
from shipwright.core.manifest import ManifestPreconditionError, UpdateManifestGenerator
from shipwright.core.production_guard import enforce_production_constraints
from shipwright.core.publisher import ArtifactPublisher, PublishError
from shipwright.core.targets import default_targets
from shipwright.hosts import ReleaseHost, ReleaseHostError
from shipwright.models.outcomes import PipelineStatus, ReleaseReport
from shipwright.models.release import ReleaseContext
from shipwright.models.targets import TargetDescriptor

logger = logging.getLogger(__name__)


class ReleaseOrchestrator:
    """Runs the build, publish and announce cycle for one release.

    Parameters
    ----------
    config:
        Pipeline configuration.  Uses defaults if not provided.
    targets:
        Descriptor set; defaults to the product's fixed set.
    builder:
        Builder capability.
    host:
        Release host capability.
    channels:
        Announcement channels.
    signer:
        Release signer; built from ``config.signing_key`` if omitted.
    """

    def __init__(
        self,
        config: ProdConfig | None = None,
        *,
        builder: Builder,
        host: ReleaseHost,
        targets: Iterable[TargetDescriptor] | None = None,
        channels: Iterable[NotificationChannel] = (),
        signer: ReleaseSigner | None = None,
    ) -> None:
        self.config = config or ProdConfig()

        # Fails hard if production constraints are violated
        enforce_production_constraints(self.config)

        self.targets = tuple(targets) if targets is not None else default_targets()
        validate_targets(self.targets)
        self.builder = builder
        self.host = host
        self.signer = signer or ReleaseSigner(self.config.signing_key)

        self.publisher = ArtifactPublisher(
            host,
            self.signer,
            max_attempts=self.config.publish_max_attempts,
            base_delay=self.config.publish_base_delay_seconds,
            max_delay=self.config.publish_max_delay_seconds,
        )
        self.lifecycle = AssetLifecycleManager(host)
        self.manifest_generator = UpdateManifestGenerator(
            self.publisher, asset_name=self.config.manifest_asset_name
        )
        self.fanout = NotificationFanout(
            channels,
            renderer=AnnouncementRenderer(
                self.config.product_name,
                self.config.release_page_template,
                self.config.repository,
            ),
        )

        ts = datetime.now(timezone.utc).strftime("%Y%m%d-%H%M%S")
        self.run_id = f"sw-{ts}-{uuid.uuid4().hex[:3]}"

    def _coordinator(self) -> BuildMatrixCoordinator:
        return BuildMatrixCoordinator(
            self.targets,
            self.builder,
            self.publisher,
            self.lifecycle,
            workdir=Path(self.config.workdir) / self.run_id,
            max_workers=self.config.max_concurrent_builds,
            job_timeout_seconds=float(self.config.build_timeout_seconds),
        )

    def run(self, context: ReleaseContext) -> ReleaseReport:
        """Execute the full release cycle and report its status."""
        logger.info(
            "Release run %s for %s (release %s) on %s: %d target(s)",
            self.run_id, context.tag, context.release_id, self.host.host_name, len(self.targets),
        )

        # 1. Preflight: the release must be reachable at all
        try:
            self.host.check(context.release_id)
        except ReleaseHostError as exc:
            logger.error("Release host unreachable for release %s: %s", context.release_id, exc)
            return ReleaseReport(
                context=context, status=PipelineStatus.ABORTED,
                reason=f"release host unavailable: {exc}",
            )

        # 2. Build matrix; join is the barrier
        coordinator = self._coordinator()
        outcomes = tuple(coordinator.run(context))

        # 3. Stale-asset cleanup is infrastructure; its failure aborts
        if coordinator.gate.error is not None:
            logger.error("Stale asset cleanup failed: %s", coordinator.gate.error)
            return ReleaseReport(
                context=context, status=PipelineStatus.ABORTED, outcomes=outcomes,
                reason=f"stale asset cleanup failed: {coordinator.gate.error}",
            )

        # 4. Manifest precondition: every required target succeeded
        try:
            manifest = self.manifest_generator.build(context, outcomes)
        except ManifestPreconditionError as exc:
            logger.error("RELEASE INCOMPLETE, manifest withheld: %s", exc)
            return ReleaseReport(
                context=context, status=PipelineStatus.PARTIALLY_COMPLETE,
                outcomes=outcomes, reason=str(exc),
            )

        # 5. Publish the manifest, replacing any previous one
        try:
            manifest_record = self.manifest_generator.publish(context, manifest)
        except PublishError as exc:
            logger.error("Manifest upload failed: %s", exc)
            return ReleaseReport(
                context=context, status=PipelineStatus.ABORTED, outcomes=outcomes,
                manifest=manifest, reason=f"manifest upload failed: {exc}",
            )

        # 6. Announce; channel failures never change the status
        deliveries = tuple(self.fanout.announce(context, manifest))

        logger.info("Release %s complete", context.tag)
        return ReleaseReport(
            context=context,
            status=PipelineStatus.COMPLETE,
            outcomes=outcomes,
            manifest=manifest,
            manifest_record=manifest_record,
            deliveries=deliveries,
        )
