"""Filesystem-backed release host for dry runs and tests.

Layout: ``{base_path}/{release_id}/{asset_name}``.  Download URLs are
``file://`` URIs of the stored files.
"""

from __future__ import annotations

import fnmatch
import logging
import threading
from pathlib import Path

from shipwright.core.hasher import checksum
from shipwright.hosts import FatalHostError
from shipwright.models.artifacts import PublishedAssetRecord, RemoteAsset

logger = logging.getLogger(__name__)


class LocalReleaseHost:
    """Stores release assets in a local directory tree.

    Parameters
    ----------
    base_path:
        Root directory; one subdirectory per release identifier.
    create_releases:
        When False, ``check`` fails for a release directory that does not
        exist yet, mirroring a hosted backend.
    """

    def __init__(self, base_path: Path, *, create_releases: bool = True) -> None:
        self._base = Path(base_path)
        self._base.mkdir(parents=True, exist_ok=True)
        self._create_releases = create_releases
        self._lock = threading.Lock()

    @property
    def host_name(self) -> str:
        return "local"

    def _release_dir(self, release_id: str) -> Path:
        if not release_id or "/" in release_id or release_id in (".", ".."):
            raise FatalHostError(f"Invalid release identifier: {release_id!r}")
        return self._base / release_id

    def check(self, release_id: str) -> None:
        path = self._release_dir(release_id)
        if path.is_dir():
            return
        if not self._create_releases:
            raise FatalHostError(f"Release {release_id} not found under {self._base}")
        path.mkdir(parents=True, exist_ok=True)

    def list_assets(self, release_id: str) -> list[RemoteAsset]:
        path = self._release_dir(release_id)
        if not path.is_dir():
            return []
        return [
            RemoteAsset(
                asset_id=f.name,
                name=f.name,
                download_url=f.resolve().as_uri(),
                size=f.stat().st_size,
            )
            for f in sorted(path.iterdir())
            if f.is_file() and not f.name.startswith(".")
        ]

    def upload(
        self,
        name: str,
        data: bytes,
        release_id: str,
        *,
        content_type: str = "application/octet-stream",
    ) -> PublishedAssetRecord:
        if not name or "/" in name or name in (".", ".."):
            raise FatalHostError(f"Invalid asset name: {name!r}")
        release_dir = self._release_dir(release_id)
        with self._lock:
            release_dir.mkdir(parents=True, exist_ok=True)
            target = release_dir / name
            # Write-then-rename so readers never see a half-written asset
            tmp = release_dir / f".{name}.partial"
            tmp.write_bytes(data)
            tmp.replace(target)
        logger.debug("Stored %s (%d bytes) for release %s", name, len(data), release_id)
        return PublishedAssetRecord(
            name=name,
            download_url=target.resolve().as_uri(),
            checksum=checksum(data),
            size=len(data),
        )

    def delete(self, pattern: str, release_id: str) -> int:
        deleted = 0
        with self._lock:
            for asset in self.list_assets(release_id):
                if fnmatch.fnmatchcase(asset.name, pattern):
                    (self._release_dir(release_id) / asset.name).unlink(missing_ok=True)
                    deleted += 1
        return deleted

    def read(self, name: str, release_id: str) -> bytes:
        """Return stored asset bytes (verification helper)."""
        path = self._release_dir(release_id) / name
        if not path.is_file():
            raise FileNotFoundError(f"Asset not found: {release_id}/{name}")
        return path.read_bytes()
