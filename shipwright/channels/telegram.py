"""Telegram channel — posts the announcement through the Bot API.

Requires a bot token and a ``chat_id`` (``@channelname`` or numeric id).
"""

from __future__ import annotations

import logging

import requests
from pydantic import BaseModel, ConfigDict

from shipwright.channels import ChannelDeliveryError

logger = logging.getLogger(__name__)


class TelegramPayload(BaseModel):
    """A Telegram Bot API sendMessage payload."""

    model_config = ConfigDict(frozen=True)

    chat_id: str
    text: str
    parse_mode: str = "HTML"
    disable_web_page_preview: bool = True


class TelegramChannel:
    """Sends announcements to a Telegram chat.

    Parameters
    ----------
    chat_id:
        The Telegram chat to post to.
    bot_token:
        The bot's API token.
    timeout:
        HTTP timeout in seconds.
    """

    def __init__(self, chat_id: str, bot_token: str, *, timeout: float = 30.0) -> None:
        if not chat_id or not bot_token:
            raise ValueError("TelegramChannel needs both chat_id and bot_token")
        self._chat_id = chat_id
        self._bot_token = bot_token
        self._timeout = timeout

    @property
    def channel_name(self) -> str:
        return "telegram"

    def build_api_url(self) -> str:
        """Return the Telegram Bot API sendMessage URL."""
        return f"https://api.telegram.org/bot{self._bot_token}/sendMessage"

    def build_payload(self, text: str) -> TelegramPayload:
        return TelegramPayload(chat_id=self._chat_id, text=text)

    def send(self, text: str) -> None:
        payload = self.build_payload(text)
        try:
            response = requests.post(
                self.build_api_url(), json=payload.model_dump(), timeout=self._timeout
            )
        except requests.RequestException as exc:
            # The URL embeds the token; keep it out of the message.
            raise ChannelDeliveryError(f"Telegram request failed: {type(exc).__name__}") from None

        if response.status_code >= 400:
            raise ChannelDeliveryError(
                f"Telegram rejected message: HTTP {response.status_code} {response.text[:200]}"
            )
        body = response.json()
        if not body.get("ok", False):
            raise ChannelDeliveryError(f"Telegram error: {body.get('description', 'unknown')}")
        logger.debug("Telegram message delivered to %s", self._chat_id)
