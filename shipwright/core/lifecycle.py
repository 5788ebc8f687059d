"""Asset lifecycle — removes stale assets so re-runs are idempotent.

Exactly one target per run (the descriptor with ``clean_stale_assets``)
performs the purge.  Every other job waits on the shared ``CleanupGate``
before its first upload, so a deletion can never land after an upload of
the same name.
"""

from __future__ import annotations

import logging
import threading

from shipwright.hosts import ReleaseHost
from shipwright.models.release import ReleaseContext

logger = logging.getLogger(__name__)

# Installer, bundle, signature and manifest name patterns.
STALE_ASSET_PATTERNS: tuple[str, ...] = (
    "*.zip",
    "*.gz",
    "*.AppImage",
    "*.deb",
    "*.dmg",
    "*.msi",
    "*.sig",
    "*.exe",
    "*.json",
)


class CleanupGateError(RuntimeError):
    """Raised to a waiting publisher when stale-asset cleanup did not succeed."""


class AssetLifecycleManager:
    """Deletes previously published assets for a release.

    Parameters
    ----------
    host:
        The release host.
    patterns:
        Glob patterns of asset names to remove.
    """

    def __init__(
        self, host: ReleaseHost, patterns: tuple[str, ...] = STALE_ASSET_PATTERNS
    ) -> None:
        self._host = host
        self._patterns = patterns

    def purge(self, context: ReleaseContext) -> int:
        """Delete all matching assets; returns the number removed.

        Finding nothing is success.  Host errors propagate to the caller.
        """
        total = 0
        for pattern in self._patterns:
            count = self._host.delete(pattern, context.release_id)
            if count:
                logger.info(
                    "Deleted %d stale asset(s) matching %s from release %s",
                    count, pattern, context.release_id,
                )
            total += count
        if total == 0:
            logger.info("No stale assets on release %s", context.release_id)
        return total


class CleanupGate:
    """One-shot latch resolved by the designated cleanup job.

    Resolved exactly once by ``open``, ``skip`` or ``fail``; later calls are
    ignored so a late failure cannot retract an already opened gate.
    """

    def __init__(self) -> None:
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._error: BaseException | None = None
        self.deleted: int = 0
        self.skipped: bool = False

    def _resolve(self, *, error: BaseException | None = None, deleted: int = 0,
                 skipped: bool = False) -> None:
        with self._lock:
            if self._event.is_set():
                return
            self._error = error
            self.deleted = deleted
            self.skipped = skipped
            self._event.set()

    def open(self, deleted: int = 0) -> None:
        """Cleanup completed."""
        self._resolve(deleted=deleted)

    def skip(self) -> None:
        """No target is designated to clean up; confirmed nothing to wait for."""
        self._resolve(skipped=True)

    def fail(self, error: BaseException) -> None:
        self._resolve(error=error)

    @property
    def resolved(self) -> bool:
        return self._event.is_set()

    @property
    def error(self) -> BaseException | None:
        return self._error

    def wait(self, timeout: float | None = None) -> None:
        """Block until resolved; raise ``CleanupGateError`` unless it opened."""
        if not self._event.wait(timeout):
            raise CleanupGateError(f"Stale asset cleanup did not finish within {timeout}s")
        if self._error is not None:
            raise CleanupGateError(f"Stale asset cleanup failed: {self._error}")
