"""Build the configured release host backend."""

from __future__ import annotations

import logging

from shipwright.config import ProdConfig
from shipwright.hosts import ReleaseHost
from shipwright.hosts.github import GitHubReleaseHost
from shipwright.hosts.local import LocalReleaseHost

logger = logging.getLogger(__name__)

HOST_BACKENDS = ("github", "local")


def build_host(config: ProdConfig, backend: str | None = None) -> ReleaseHost:
    """Return the host for *backend*, defaulting to ``config.host_backend``."""
    backend = (backend or config.host_backend).lower()
    if backend == "github":
        logger.info("Release host: GitHub (%s)", config.repository)
        return GitHubReleaseHost(
            config.repository,
            config.github_token,
            api_url=config.api_url,
            uploads_url=config.uploads_url,
            timeout=float(config.upload_timeout_seconds),
        )
    if backend == "local":
        logger.info("Release host: local directory %s", config.local_host_dir)
        return LocalReleaseHost(config.local_host_dir)
    raise ValueError(f"Unknown host backend {backend!r}; expected one of {HOST_BACKENDS}")
