"""Artifact publisher — signs and uploads built artifacts to the release host.

Transient host errors are retried with capped exponential backoff plus
jitter; fatal errors and exhausted retries surface as ``PublishError``,
which the build job reports as a failure of its own target.
"""

from __future__ import annotations

import logging
import random
import time
from collections.abc import Callable

from shipwright.bridge.crypto_bridge import ReleaseSigner
from shipwright.hosts import ReleaseHost, ReleaseHostError
from shipwright.models.artifacts import BuildArtifact, PublishedAssetRecord
from shipwright.models.release import ReleaseContext

logger = logging.getLogger(__name__)

SIGNATURE_SUFFIX = ".sig"


class PublishError(RuntimeError):
    """Upload failed.  ``transient`` tells whether retries were exhausted
    (True) or the host rejected the upload outright (False)."""

    def __init__(self, message: str, *, transient: bool) -> None:
        super().__init__(message)
        self.transient = transient


class ArtifactPublisher:
    """Uploads artifacts and their detached signatures.

    Parameters
    ----------
    host:
        Release host backend.
    signer:
        Holder of the release signing key.
    max_attempts:
        Upload attempts per asset, including the first.
    base_delay, max_delay:
        Backoff bounds in seconds: ``min(max_delay, base_delay * 2**(n-1))``
        plus up to the same amount of jitter.
    """

    def __init__(
        self,
        host: ReleaseHost,
        signer: ReleaseSigner,
        *,
        max_attempts: int = 4,
        base_delay: float = 2.0,
        max_delay: float = 30.0,
    ) -> None:
        self._host = host
        self._signer = signer
        self._max_attempts = max(1, max_attempts)
        self._base_delay = max(0.0, base_delay)
        self._max_delay = max(self._base_delay, max_delay)

    @property
    def host(self) -> ReleaseHost:
        return self._host

    def _with_retry(self, name: str, action: Callable[[], PublishedAssetRecord]) -> PublishedAssetRecord:
        attempt = 0
        while True:
            attempt += 1
            try:
                return action()
            except ReleaseHostError as exc:
                if not exc.transient:
                    raise PublishError(f"Upload of {name} rejected: {exc}", transient=False) from exc
                if attempt >= self._max_attempts:
                    raise PublishError(
                        f"Upload of {name} failed after {attempt} attempts: {exc}",
                        transient=True,
                    ) from exc
                delay = min(self._max_delay, self._base_delay * (2 ** (attempt - 1)))
                jitter = random.uniform(0.0, delay) if delay > 0 else 0.0
                logger.warning(
                    "Upload retry asset=%s attempt=%s/%s delay=%.3fs reason=%s",
                    name, attempt, self._max_attempts, delay + jitter, exc,
                )
                time.sleep(delay + jitter)
            except Exception as exc:
                # Any other host failure is fatal
                raise PublishError(
                    f"Upload of {name} failed: {type(exc).__name__}: {exc}", transient=False
                ) from exc

    def publish_bytes(
        self,
        name: str,
        data: bytes,
        context: ReleaseContext,
        *,
        content_type: str = "application/octet-stream",
        signature: str | None = None,
    ) -> PublishedAssetRecord:
        """Upload raw bytes under *name*; same-named assets are overwritten.

        When *signature* is given it is uploaded alongside as ``<name>.sig``
        and recorded on the returned record.
        """
        record = self._with_retry(
            name,
            lambda: self._host.upload(name, data, context.release_id, content_type=content_type),
        )
        if signature is None:
            return record

        sig_name = f"{name}{SIGNATURE_SUFFIX}"
        self._with_retry(
            sig_name,
            lambda: self._host.upload(
                sig_name, signature.encode("utf-8"), context.release_id,
                content_type="text/plain",
            ),
        )
        return record.model_copy(update={"signature": signature})

    def publish(self, artifact: BuildArtifact, context: ReleaseContext) -> PublishedAssetRecord:
        """Sign (unless already signed) and upload one build artifact."""
        try:
            data = artifact.path.read_bytes()
        except OSError as exc:
            raise PublishError(f"Cannot read artifact {artifact.path}: {exc}", transient=False) from exc
        if not data:
            raise PublishError(f"Artifact {artifact.path} is empty", transient=False)

        signature = artifact.signature or self._signer.sign(data)
        record = self.publish_bytes(
            artifact.asset_name,
            data,
            context,
            content_type=artifact.media_type,
            signature=signature,
        )
        logger.info(
            "Published %s -> %s (%d bytes, %s)",
            artifact.asset_name, record.download_url, record.size, record.checksum,
        )
        return record
