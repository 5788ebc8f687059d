"""GitHub Releases backend for the release host protocol (REST v3).

Endpoints used
--------------
- ``GET    {api}/repos/{repo}/releases/{id}``              — preflight check
- ``GET    {api}/repos/{repo}/releases/{id}/assets``       — paginated listing
- ``DELETE {api}/repos/{repo}/releases/assets/{asset_id}`` — 404 = already gone
- ``POST   {uploads}/repos/{repo}/releases/{id}/assets?name=...``

GitHub refuses to upload over an existing asset name (HTTP 422), so an
upload first deletes any same-named asset: last write wins.
"""

from __future__ import annotations

import fnmatch
import logging
from typing import Any

import requests

from shipwright.core.hasher import checksum
from shipwright.hosts import FatalHostError, ReleaseHostError, TransientHostError
from shipwright.models.artifacts import PublishedAssetRecord, RemoteAsset

logger = logging.getLogger(__name__)

_PAGE_SIZE = 100


def classify_response(response: requests.Response) -> ReleaseHostError | None:
    """Map an HTTP response to a host error, or None on success.

    408, 429, 5xx and a 403 caused by an exhausted rate limit are transient;
    every other 4xx is fatal.
    """
    status = response.status_code
    if status < 400:
        return None
    detail = (response.text or "")[:256] or f"http_{status}"
    if status in (408, 429) or status >= 500:
        return TransientHostError(f"GitHub HTTP {status}: {detail}")
    if status == 403 and response.headers.get("x-ratelimit-remaining") == "0":
        return TransientHostError(f"GitHub rate limit exhausted: {detail}")
    return FatalHostError(f"GitHub HTTP {status}: {detail}")


class GitHubReleaseHost:
    """Uploads, lists and deletes assets of a GitHub release.

    Parameters
    ----------
    repository:
        ``"owner/name"``.
    token:
        Token with ``contents:write`` on the repository.
    timeout:
        Per-request timeout in seconds (uploads included).
    session:
        Optional ``requests.Session``; one is created if omitted.
    """

    def __init__(
        self,
        repository: str,
        token: str,
        *,
        api_url: str = "https://api.github.com",
        uploads_url: str = "https://uploads.github.com",
        timeout: float = 300.0,
        session: requests.Session | None = None,
    ) -> None:
        if not repository or "/" not in repository:
            raise ValueError(f"repository must be 'owner/name', got {repository!r}")
        self._repo = repository
        self._api = api_url.rstrip("/")
        self._uploads = uploads_url.rstrip("/")
        self._timeout = timeout
        self._session = session or requests.Session()
        self._headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if token:
            self._headers["Authorization"] = f"Bearer {token}"

    @property
    def host_name(self) -> str:
        return "github"

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def _request(
        self,
        method: str,
        url: str,
        *,
        allow: tuple[int, ...] = (),
        **kwargs: Any,
    ) -> requests.Response:
        headers = dict(self._headers)
        headers.update(kwargs.pop("headers", {}))
        try:
            response = self._session.request(
                method, url, headers=headers, timeout=self._timeout, **kwargs
            )
        except requests.Timeout as exc:
            raise TransientHostError(f"{method} {url} timed out") from exc
        except requests.RequestException as exc:
            raise TransientHostError(f"{method} {url} failed: {exc}") from exc
        if response.status_code in allow:
            return response
        error = classify_response(response)
        if error is not None:
            raise error
        return response

    @staticmethod
    def _json(response: requests.Response, method: str, url: str) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            raise FatalHostError(f"{method} {url} returned a malformed body: {exc}") from exc

    # ------------------------------------------------------------------
    # ReleaseHost protocol
    # ------------------------------------------------------------------

    def check(self, release_id: str) -> None:
        self._request("GET", f"{self._api}/repos/{self._repo}/releases/{release_id}")

    def list_assets(self, release_id: str) -> list[RemoteAsset]:
        assets: list[RemoteAsset] = []
        page = 1
        while True:
            url = f"{self._api}/repos/{self._repo}/releases/{release_id}/assets"
            response = self._request("GET", url, params={"per_page": _PAGE_SIZE, "page": page})
            batch = self._json(response, "GET", url)
            try:
                for item in batch:
                    assets.append(
                        RemoteAsset(
                            asset_id=str(item["id"]),
                            name=item["name"],
                            download_url=item.get("browser_download_url", ""),
                            size=int(item.get("size", 0)),
                        )
                    )
            except (KeyError, TypeError, ValueError) as exc:
                raise FatalHostError(f"GET {url} returned an unexpected asset listing: {exc}") from exc
            if len(batch) < _PAGE_SIZE:
                return assets
            page += 1

    def _delete_asset(self, asset: RemoteAsset) -> None:
        self._request(
            "DELETE",
            f"{self._api}/repos/{self._repo}/releases/assets/{asset.asset_id}",
            allow=(404,),
        )

    def delete(self, pattern: str, release_id: str) -> int:
        deleted = 0
        for asset in self.list_assets(release_id):
            if fnmatch.fnmatchcase(asset.name, pattern):
                self._delete_asset(asset)
                logger.debug("Deleted asset %s (%s)", asset.name, asset.asset_id)
                deleted += 1
        return deleted

    def upload(
        self,
        name: str,
        data: bytes,
        release_id: str,
        *,
        content_type: str = "application/octet-stream",
    ) -> PublishedAssetRecord:
        for asset in self.list_assets(release_id):
            if asset.name == name:
                logger.info("Replacing existing asset %s on release %s", name, release_id)
                self._delete_asset(asset)

        url = f"{self._uploads}/repos/{self._repo}/releases/{release_id}/assets"
        response = self._request(
            "POST",
            url,
            params={"name": name},
            data=data,
            headers={"Content-Type": content_type},
        )
        body = self._json(response, "POST", url)
        try:
            return PublishedAssetRecord(
                name=body.get("name", name),
                download_url=body.get("browser_download_url", ""),
                checksum=checksum(data),
                size=int(body.get("size", len(data))),
            )
        except (AttributeError, TypeError, ValueError) as exc:
            raise FatalHostError(f"POST {url} returned an unexpected asset: {exc}") from exc
