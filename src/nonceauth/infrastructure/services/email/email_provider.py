"""Outgoing message value and the transport interface it is handed to."""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class OutgoingEmail:
    """A fully rendered message, ready for a transport.

    The bodies may carry a login code or a verification link, so a message
    must never be written to a log as a whole.
    """

    to: str
    subject: str
    html_body: str
    text_body: str
    from_email: str
    from_name: str

    @property
    def sender(self) -> str:
        return f"{self.from_name} <{self.from_email}>"


class EmailProvider(ABC):
    """Delivers rendered messages.

    Providers are constructed explicitly from settings and injected into the
    email service; nothing holds a process-wide transport.
    """

    @abstractmethod
    async def deliver(self, message: OutgoingEmail) -> bool:
        """Deliver one message.

        Returns:
            True if the transport accepted the message, False otherwise.

        Raises:
            Exception: Whatever the transport raises on a hard failure.
        """

    @abstractmethod
    async def test_connection(self) -> tuple[bool, str | None]:
        """Check that the transport is reachable.

        Returns:
            Tuple of (success: bool, error_message: str | None).
        """
