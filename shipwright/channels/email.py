"""Email channel — sends the announcement over SMTP (STARTTLS when offered)."""

from __future__ import annotations

import logging
import smtplib
from email.message import EmailMessage

from shipwright.channels import ChannelDeliveryError

logger = logging.getLogger(__name__)


class EmailChannel:
    """Sends announcements to a single recipient.

    The first line of the rendered text becomes the subject.

    Parameters
    ----------
    host, port:
        SMTP server.
    recipient:
        Address to notify.
    sender:
        From address.
    username, password:
        Optional SMTP credentials.
    """

    def __init__(
        self,
        host: str,
        recipient: str,
        *,
        port: int = 587,
        sender: str = "shipwright@localhost",
        username: str = "",
        password: str = "",
        timeout: float = 30.0,
    ) -> None:
        if not host or not recipient:
            raise ValueError("EmailChannel needs an SMTP host and a recipient")
        self._host = host
        self._port = port
        self._recipient = recipient
        self._sender = sender
        self._username = username
        self._password = password
        self._timeout = timeout

    @property
    def channel_name(self) -> str:
        return "email"

    def build_message(self, text: str) -> EmailMessage:
        subject, _, _ = text.partition("\n")
        message = EmailMessage()
        message["Subject"] = subject.strip() or "Release announcement"
        message["From"] = self._sender
        message["To"] = self._recipient
        message.set_content(text)
        return message

    def send(self, text: str) -> None:
        message = self.build_message(text)
        try:
            with smtplib.SMTP(self._host, self._port, timeout=self._timeout) as smtp:
                smtp.ehlo()
                if smtp.has_extn("starttls"):
                    smtp.starttls()
                    smtp.ehlo()
                if self._username:
                    smtp.login(self._username, self._password)
                smtp.send_message(message)
        except (smtplib.SMTPException, OSError) as exc:
            raise ChannelDeliveryError(f"SMTP delivery to {self._recipient} failed: {exc}") from exc
        logger.debug("Announcement mailed to %s", self._recipient)
