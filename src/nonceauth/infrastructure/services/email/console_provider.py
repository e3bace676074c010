"""Email provider that writes messages to the log instead of sending them.

Only allowed outside production, where no mail server is available and the
developer needs the login code or link from the message body.
"""

from nonceauth.core.logging import get_logger
from nonceauth.infrastructure.services.email.email_provider import EmailProvider, OutgoingEmail

logger = get_logger(__name__)


class ConsoleEmailProvider(EmailProvider):
    """Logs outgoing email and reports success."""

    async def deliver(self, message: OutgoingEmail) -> bool:
        # The body is interpolated into the event text so the redaction
        # processor, which works on keys, leaves it readable.
        logger.info(
            f"[EMAIL] To: {message.to}\n"
            f"From: {message.sender}\n"
            f"Subject: {message.subject}\n"
            f"Body:\n{message.text_body}\n"
            f"{'=' * 80}"
        )
        return True

    async def test_connection(self) -> tuple[bool, str | None]:
        return True, None
