"""Production configuration — env-driven.

Centralized config using pydantic-settings.  Reads from a .env file and
SHIPWRIGHT_* environment variables; CI secrets (tokens, signing key) are
injected the same way.
"""

from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class ProdConfig(BaseSettings):
    """Release pipeline configuration with environment variable overrides.

    Examples
    --------
    Override via environment::

        export SHIPWRIGHT_REPOSITORY=LibNyanpasu/clash-nyanpasu
        export SHIPWRIGHT_GITHUB_TOKEN=ghp_...
        export SHIPWRIGHT_SIGNING_KEY=<hex seed>

    Or via .env file::

        SHIPWRIGHT_ENVIRONMENT=production
        SHIPWRIGHT_MAX_CONCURRENT_BUILDS=2
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="SHIPWRIGHT_",
        env_file_encoding="utf-8",
    )

    # Runtime environment
    environment: str = "development"
    log_level: str = "INFO"
    debug: bool = False

    # Product and release host
    product_name: str = "Clash Nyanpasu"
    repository: str = ""  # "owner/name"
    github_token: str = ""
    api_url: str = "https://api.github.com"
    uploads_url: str = "https://uploads.github.com"
    host_backend: str = "github"  # "github" | "local"
    local_host_dir: Path = Path(".shipwright/host")

    # Build
    project_dir: Path = Path(".")
    workdir: Path = Path(".shipwright/work")
    max_concurrent_builds: int = 4
    build_timeout_seconds: int = 3600

    # Signing: hex-encoded Ed25519 seed; the password is handed to the
    # packaging tool for its own updater signature.
    signing_key: str = ""
    signing_key_password: str = ""

    # Publishing
    upload_timeout_seconds: int = 300
    publish_max_attempts: int = 4
    publish_base_delay_seconds: float = 2.0
    publish_max_delay_seconds: float = 30.0
    manifest_asset_name: str = "latest.json"
    release_page_template: str = "https://github.com/{repository}/releases/tag/v{version}"

    # Notification channels: a channel is enabled when its credentials are set
    telegram_token: str = ""
    telegram_chat: str = ""
    twitter_bearer_token: str = ""
    smtp_host: str = ""
    smtp_port: int = 587
    smtp_username: str = ""
    smtp_password: str = ""
    smtp_sender: str = "shipwright@localhost"
    email_recipient: str = ""
    notify_timeout_seconds: int = 30

    @property
    def is_production(self) -> bool:
        """Whether running in production mode."""
        return self.environment == "production"

