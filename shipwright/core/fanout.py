"""Notification fanout — announces a release on every configured channel.

Each channel gets exactly one delivery attempt per run.  A failing channel
is logged and recorded; it never blocks the remaining channels and never
fails the release.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from shipwright.channels import NotificationChannel
from shipwright.channels._formatting import AnnouncementRenderer
from shipwright.models.manifest import UpdateManifest
from shipwright.models.outcomes import DeliveryResult
from shipwright.models.release import ReleaseContext

logger = logging.getLogger(__name__)


class NotificationFanout:
    """Routes one release announcement to ALL registered channels.

    Usage
    -----
    >>> fanout = NotificationFanout(renderer=AnnouncementRenderer("App"))
    >>> fanout.register_channel(telegram_channel)
    >>> fanout.announce(context, manifest)
    """

    def __init__(
        self,
        channels: Iterable[NotificationChannel] = (),
        *,
        renderer: AnnouncementRenderer,
    ) -> None:
        self._channels: list[NotificationChannel] = []
        self._renderer = renderer
        for channel in channels:
            self.register_channel(channel)

    def register_channel(self, channel: NotificationChannel) -> None:
        """Register a channel.  Registering the same instance twice is a no-op."""
        if channel not in self._channels:
            self._channels.append(channel)
            logger.debug("Registered channel: %s", channel.channel_name)

    @property
    def channels(self) -> list[NotificationChannel]:
        return list(self._channels)

    def announce(
        self, context: ReleaseContext, manifest: UpdateManifest | None = None
    ) -> list[DeliveryResult]:
        """Attempt delivery once per channel; never raises."""
        if not self._channels:
            logger.warning("No channels registered; release %s not announced", context.tag)
            return []

        results: list[DeliveryResult] = []
        for channel in self._channels:
            name = channel.channel_name
            try:
                message = self._renderer.render(name, context, manifest)
                channel.send(message.text)
            except Exception as exc:  # noqa: BLE001
                logger.error("Channel %s failed for release %s: %s", name, context.tag, exc)
                results.append(DeliveryResult(channel=name, delivered=False, error=str(exc)))
                continue
            logger.info("Announced release %s on %s", context.tag, name)
            results.append(DeliveryResult(channel=name, delivered=True))

        failed = sum(1 for r in results if not r.delivered)
        if failed:
            logger.warning(
                "Release %s: %d/%d channel(s) delivered, %d failed",
                context.tag, len(results) - failed, len(results), failed,
            )
        return results
