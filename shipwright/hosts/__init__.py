"""Release host protocol and error taxonomy.

A release host stores the assets of a release.  The pipeline only ever
uploads, deletes by name pattern, and lists; all three are idempotent from
the orchestrator's point of view.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from shipwright.models.artifacts import PublishedAssetRecord, RemoteAsset


class ReleaseHostError(RuntimeError):
    """Base class for release host failures."""

    transient: bool = False


class TransientHostError(ReleaseHostError):
    """Network error, timeout or rate limit — eligible for retry."""

    transient = True


class FatalHostError(ReleaseHostError):
    """Authentication failure, rejected asset, unknown release — not retried."""


@runtime_checkable
class ReleaseHost(Protocol):
    """Protocol every release host backend implements."""

    @property
    def host_name(self) -> str:
        ...

    def check(self, release_id: str) -> None:
        """Raise ``ReleaseHostError`` if the release cannot be reached."""
        ...

    def list_assets(self, release_id: str) -> list[RemoteAsset]:
        ...

    def upload(
        self,
        name: str,
        data: bytes,
        release_id: str,
        *,
        content_type: str = "application/octet-stream",
    ) -> PublishedAssetRecord:
        """Upload *data* as *name*, replacing any asset of the same name."""
        ...

    def delete(self, pattern: str, release_id: str) -> int:
        """Delete assets whose name matches the glob *pattern*.

        Returns the number deleted; 0 is a valid result.
        """
        ...
