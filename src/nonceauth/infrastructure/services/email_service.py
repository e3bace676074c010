"""Email service for sending templated emails.

Renders one of the built-in templates and hands the result to an injected
``EmailProvider``. Every failure, whether the provider raises or reports
that it did not send, surfaces as ``TransportError`` so callers can run
their compensating deletes.
"""

from typing import Any

from nonceauth.core.config import Settings
from nonceauth.core.exceptions import TransportError
from nonceauth.core.logging import get_logger
from nonceauth.infrastructure.services.email.console_provider import ConsoleEmailProvider
from nonceauth.infrastructure.services.email.email_provider import EmailProvider, OutgoingEmail
from nonceauth.infrastructure.services.email.smtp_provider import SMTPProvider, SMTPSettings
from nonceauth.infrastructure.services.email.template_renderer import TemplateRenderer
from nonceauth.infrastructure.services.email.templates import BUILTIN_TEMPLATES, EmailTemplate

logger = get_logger(__name__)


class EmailService:
    """Service for sending templated emails."""

    def __init__(
        self,
        provider: EmailProvider,
        from_email: str,
        from_name: str,
        site_title: str,
        site_author: str,
        renderer: TemplateRenderer | None = None,
        templates: dict[str, EmailTemplate] | None = None,
    ) -> None:
        """Initialize the email service.

        Args:
            provider: Transport that delivers the rendered message.
            from_email: Sender address.
            from_name: Sender display name.
            site_title: Site name merged into every template.
            site_author: Signature merged into every template.
            renderer: Template renderer. Defaults to a new TemplateRenderer.
            templates: Template registry. Defaults to the built-in templates.
        """
        self.provider = provider
        self.from_email = from_email
        self.from_name = from_name
        self.site_title = site_title
        self.site_author = site_author
        self.renderer = renderer or TemplateRenderer()
        self.templates = templates if templates is not None else BUILTIN_TEMPLATES

    @classmethod
    def from_settings(cls, settings: Settings, provider: EmailProvider | None = None) -> "EmailService":
        """Build the service and, unless given, its provider from settings."""
        return cls(
            provider=provider or create_email_provider(settings),
            from_email=settings.email_from_address,
            from_name=settings.email_from_name or settings.site_author,
            site_title=settings.site_title,
            site_author=settings.site_author,
        )

    def render(self, template_name: str, to: str, params: dict[str, Any] | None = None) -> OutgoingEmail:
        """Render a template into a message addressed to ``to``.

        Raises:
            KeyError: If no template has that name.
        """
        template = self.templates[template_name]
        variables = {
            "site_title": self.site_title,
            "site_author": self.site_author,
            **(params or {}),
            "email": to,
        }
        return OutgoingEmail(
            to=to,
            subject=self.renderer.render_text(template.subject, variables),
            html_body=self.renderer.render(template.html_body, variables),
            text_body=self.renderer.render_text(template.text_body, variables),
            from_email=self.from_email,
            from_name=self.from_name,
        )

    async def send(self, template_name: str, to: str, params: dict[str, Any] | None = None) -> None:
        """Render and send a template.

        Args:
            template_name: Name of a registered template.
            to: Recipient address.
            params: Template-specific variables.

        Raises:
            TransportError: If rendering or delivery failed.
        """
        try:
            sent = await self.provider.deliver(self.render(template_name, to, params))
        except Exception as e:
            logger.error("Email dispatch failed", template=template_name, to=to, error=str(e))
            raise TransportError() from e

        if not sent:
            logger.error("Email provider reported failure", template=template_name, to=to)
            raise TransportError()

        logger.info("Email sent", template=template_name, to=to)


def create_email_provider(settings: Settings) -> EmailProvider:
    """Construct the provider selected by ``settings.email_transport``."""
    if settings.email_transport == "smtp":
        return SMTPProvider(
            SMTPSettings(
                host=settings.smtp_host,
                port=settings.smtp_port,
                username=settings.smtp_username,
                password=settings.smtp_password,
                use_tls=settings.smtp_use_tls,
                use_ssl=settings.smtp_use_ssl,
                timeout=settings.smtp_timeout,
            )
        )
    return ConsoleEmailProvider()
