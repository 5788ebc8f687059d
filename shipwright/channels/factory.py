"""Build the enabled channel set from configuration."""

from __future__ import annotations

import logging

from shipwright.channels import NotificationChannel
from shipwright.channels.email import EmailChannel
from shipwright.channels.telegram import TelegramChannel
from shipwright.channels.twitter import TwitterChannel
from shipwright.config import ProdConfig

logger = logging.getLogger(__name__)


def build_channels(config: ProdConfig) -> list[NotificationChannel]:
    """Return a channel for every service whose credentials are configured."""
    channels: list[NotificationChannel] = []
    timeout = float(config.notify_timeout_seconds)

    if config.telegram_token and config.telegram_chat:
        channels.append(
            TelegramChannel(config.telegram_chat, config.telegram_token, timeout=timeout)
        )
    if config.twitter_bearer_token:
        channels.append(TwitterChannel(config.twitter_bearer_token, timeout=timeout))
    if config.smtp_host and config.email_recipient:
        channels.append(
            EmailChannel(
                config.smtp_host,
                config.email_recipient,
                port=config.smtp_port,
                sender=config.smtp_sender,
                username=config.smtp_username,
                password=config.smtp_password,
                timeout=timeout,
            )
        )

    if not channels:
        logger.warning("No notification channels configured; the release will not be announced")
    else:
        logger.info("Notification channels: %s", ", ".join(c.channel_name for c in channels))
    return channels
