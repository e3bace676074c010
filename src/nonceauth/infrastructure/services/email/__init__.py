"""Email providers, templates and rendering."""

from nonceauth.infrastructure.services.email.console_provider import ConsoleEmailProvider
from nonceauth.infrastructure.services.email.email_provider import EmailProvider, OutgoingEmail
from nonceauth.infrastructure.services.email.smtp_provider import SMTPProvider, SMTPSettings
from nonceauth.infrastructure.services.email.template_renderer import TemplateRenderer
from nonceauth.infrastructure.services.email.templates import (
    BUILTIN_TEMPLATES,
    EMAIL_CHANGE_REQUESTED,
    VERIFY_EMAIL_CHANGE,
    VERIFY_LOGIN,
    EmailTemplate,
)

__all__ = [
    "BUILTIN_TEMPLATES",
    "ConsoleEmailProvider",
    "EMAIL_CHANGE_REQUESTED",
    "EmailProvider",
    "EmailTemplate",
    "OutgoingEmail",
    "SMTPProvider",
    "SMTPSettings",
    "TemplateRenderer",
    "VERIFY_EMAIL_CHANGE",
    "VERIFY_LOGIN",
]
