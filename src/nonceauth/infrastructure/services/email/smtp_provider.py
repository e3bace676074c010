"""SMTP email provider implementation.

Uses aiosmtplib for asynchronous email sending via SMTP. Both authenticated
submission and unauthenticated local relays are supported.
"""

from email.message import EmailMessage
from typing import Optional

import aiosmtplib
from pydantic import BaseModel, ConfigDict

from nonceauth.core.logging import get_logger
from nonceauth.infrastructure.services.email.email_provider import EmailProvider, OutgoingEmail

logger = get_logger(__name__)


class SMTPSettings(BaseModel):
    """Connection settings for the SMTP provider."""

    model_config = ConfigDict(from_attributes=True)

    host: str
    port: int = 587
    username: Optional[str] = None
    password: Optional[str] = None
    use_tls: bool = True
    use_ssl: bool = False
    timeout: int = 10


def build_mime_message(message: OutgoingEmail) -> EmailMessage:
    """Build a multipart/alternative message with text and HTML parts."""
    mime = EmailMessage()
    mime["Subject"] = message.subject
    mime["From"] = message.sender
    mime["To"] = message.to
    mime.set_content(message.text_body)
    mime.add_alternative(message.html_body, subtype="html")
    return mime


class SMTPProvider(EmailProvider):
    """SMTP email provider implementation."""

    def __init__(self, settings: SMTPSettings) -> None:
        self.settings = settings

    def _client(self) -> aiosmtplib.SMTP:
        # aiosmtplib's use_tls means implicit TLS on connect.
        return aiosmtplib.SMTP(
            hostname=self.settings.host,
            port=self.settings.port,
            use_tls=self.settings.use_ssl,
            start_tls=False,
            timeout=self.settings.timeout,
        )

    async def _prepare(self, smtp: aiosmtplib.SMTP) -> None:
        if self.settings.use_tls and not self.settings.use_ssl:
            await smtp.starttls()
        if self.settings.username:
            await smtp.login(self.settings.username, self.settings.password or "")

    async def deliver(self, message: OutgoingEmail) -> bool:
        """Send a message through the configured relay.

        Raises:
            Exception: If SMTP connection or sending fails.
        """
        mime = build_mime_message(message)
        try:
            async with self._client() as smtp:
                await self._prepare(smtp)
                await smtp.send_message(mime)
            return True
        except Exception as e:
            logger.error("Failed to send email via SMTP", host=self.settings.host, error=str(e))
            raise

    async def test_connection(self) -> tuple[bool, str | None]:
        """Test the SMTP connection and authentication."""
        try:
            async with self._client() as smtp:
                await self._prepare(smtp)
            return True, None
        except Exception as e:
            error_msg = f"SMTP connection failed: {str(e)}"
            logger.error(error_msg, host=self.settings.host)
            return False, error_msg
