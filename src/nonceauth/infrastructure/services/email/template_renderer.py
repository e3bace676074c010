"""Jinja2 template renderer for email templates.

Provides safe template rendering with HTML escaping and error handling.
"""

from jinja2 import StrictUndefined, TemplateSyntaxError, UndefinedError
from jinja2.sandbox import SandboxedEnvironment

from nonceauth.core.logging import get_logger

logger = get_logger(__name__)


class TemplateRenderer:
    """Jinja2 template renderer with security features.

    Uses a sandboxed environment to prevent code execution in templates.
    HTML output is autoescaped; plain text output is not.
    """

    def __init__(self) -> None:
        """Initialize the sandboxed environments."""
        self.html_env = SandboxedEnvironment(
            autoescape=True,
            trim_blocks=True,
            lstrip_blocks=True,
            undefined=StrictUndefined,
        )
        self.text_env = SandboxedEnvironment(
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
            undefined=StrictUndefined,
        )

    def _render(self, env: SandboxedEnvironment, template_string: str, variables: dict) -> str:
        try:
            return env.from_string(template_string).render(**variables)
        except TemplateSyntaxError as e:
            logger.error("Template syntax error", error=str(e), line=e.lineno)
            raise
        except UndefinedError as e:
            logger.error("Undefined variable in template", error=str(e))
            raise

    def render(self, template_string: str, variables: dict) -> str:
        """Render an HTML template string with autoescaping.

        Raises:
            TemplateSyntaxError: If template syntax is invalid.
            UndefinedError: If a required variable is missing.
        """
        return self._render(self.html_env, template_string, variables)

    def render_text(self, template_string: str, variables: dict) -> str:
        """Render a plain text template string (subjects, text bodies)."""
        return self._render(self.text_env, template_string, variables)
