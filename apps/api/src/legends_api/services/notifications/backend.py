"""Email backend implementations for member notifications."""

from __future__ import annotations

import asyncio
import smtplib
from dataclasses import dataclass
from email.message import EmailMessage
from typing import List, Optional, Protocol

from legends_api.core.settings import settings


class EmailBackend(Protocol):
    """Minimal protocol for sending transactional emails."""

    async def send_email(
        self,
        recipient: str,
        subject: str,
        body_text: str,
        *,
        sender: str | None = None,
        reply_to: str | None = None,
    ) -> None:
        ...


def _build_message(
    recipient: str,
    subject: str,
    body_text: str,
    *,
    sender: str | None,
    reply_to: str | None,
) -> EmailMessage:
    message = EmailMessage()
    if sender:
        message["From"] = sender
    message["To"] = recipient
    message["Subject"] = subject
    if reply_to:
        message["Reply-To"] = reply_to
    message.set_content(body_text)
    return message


class SMTPEmailBackend:
    """SMTP-powered backend that sends emails via standard library."""

    def __init__(
        self,
        *,
        host: str,
        port: int,
        username: Optional[str],
        password: Optional[str],
        use_tls: bool,
        sender_email: str,
    ) -> None:
        self._host = host
        self._port = port
        self._username = username
        self._password = password
        self._use_tls = use_tls
        self._sender_email = sender_email

    async def send_email(
        self,
        recipient: str,
        subject: str,
        body_text: str,
        *,
        sender: str | None = None,
        reply_to: str | None = None,
    ) -> None:
        """Send email asynchronously by offloading blocking call."""

        message = _build_message(
            recipient,
            subject,
            body_text,
            sender=sender or self._sender_email,
            reply_to=reply_to,
        )
        await asyncio.to_thread(self._send, message)

    def _send(self, message: EmailMessage) -> None:
        smtp = smtplib.SMTP(self._host, self._port, timeout=10)
        try:
            if self._use_tls:
                smtp.starttls()
            if self._username and self._password:
                smtp.login(self._username, self._password)
            smtp.send_message(message)
        finally:
            smtp.quit()


@dataclass
class InMemoryEmailBackend:
    """Test backend storing outbound messages in memory."""

    sent_messages: List[EmailMessage]

    def __init__(self) -> None:
        self.sent_messages = []

    async def send_email(
        self,
        recipient: str,
        subject: str,
        body_text: str,
        *,
        sender: str | None = None,
        reply_to: str | None = None,
    ) -> None:
        self.sent_messages.append(
            _build_message(recipient, subject, body_text, sender=sender, reply_to=reply_to)
        )


def build_email_backend() -> EmailBackend | None:
    """Return the SMTP backend when configured."""

    if not settings.smtp_host:
        return None
    return SMTPEmailBackend(
        host=settings.smtp_host,
        port=settings.smtp_port,
        username=settings.smtp_username,
        password=settings.smtp_password,
        use_tls=settings.smtp_use_tls,
        sender_email=settings.email_default_from,
    )
