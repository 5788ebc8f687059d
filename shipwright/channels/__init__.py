"""Notification channel protocol.

Every channel exposes a ``channel_name`` and a single ``send(text)``
operation.  ``send`` raises on failure; the fanout decides what a failure
means (nothing, beyond a log line).
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


class ChannelDeliveryError(RuntimeError):
    """Raised by a channel when its external service rejected the message."""


@runtime_checkable
class NotificationChannel(Protocol):
    """Protocol every announcement channel implements."""

    @property
    def channel_name(self) -> str:
        """Unique identifier (``"telegram"``, ``"twitter"``, ``"email"``)."""
        ...

    def send(self, text: str) -> None:
        """Deliver *text*; raise on any failure."""
        ...
