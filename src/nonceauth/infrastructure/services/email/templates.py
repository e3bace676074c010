"""Built-in email templates.

Every template receives ``site_title``, ``site_author`` and ``email`` (the
recipient) in addition to its own parameters.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class EmailTemplate:
    """A named email template.

    Attributes:
        name: Template identifier used by the services.
        subject: Subject line (Jinja2).
        html_body: HTML body (Jinja2, autoescaped).
        text_body: Plain text body (Jinja2).
    """

    name: str
    subject: str
    html_body: str
    text_body: str


VERIFY_LOGIN = EmailTemplate(
    name="verify_login",
    subject="{{ site_title }} - Verify Your Login",
    html_body="""\
<div>
  <h1>{{ site_title }}</h1>
  <p>
    Hello, {{ email }}!<br /><br />
    Use the following code to finish your login: <strong>{{ code }}</strong>
    <br /><br />
    - {{ site_author }}
  </p>
</div>
""",
    text_body="""\
Hello, {{ email }}!

Use the following code to finish your login: {{ code }}

- {{ site_author }}
""",
)

EMAIL_CHANGE_REQUESTED = EmailTemplate(
    name="email_change_requested",
    subject="{{ site_title }} - Email Change Requested",
    html_body="""\
<div>
  <h1>{{ site_title }}</h1>
  <p>
    Hello, {{ email }}!<br /><br />
    You are receiving this email because your account has requested a
    change in its associated email address. If you made this request,
    then you may safely ignore this email. Otherwise, please reply to
    this email.
    <br /><br />
    - {{ site_author }}
  </p>
</div>
""",
    text_body="""\
Hello, {{ email }}!

You are receiving this email because your account has requested a change in
its associated email address. If you made this request, then you may safely
ignore this email. Otherwise, please reply to this email.

- {{ site_author }}
""",
)

VERIFY_EMAIL_CHANGE = EmailTemplate(
    name="verify_email_change",
    subject="{{ site_title }} - Verify Email Change",
    html_body="""\
<div>
  <h1>{{ site_title }}</h1>
  <p>
    Hello, {{ email }}!<br /><br />
    Click on the following link to verify your new email change:<br /><br />
    <a href="{{ verify_url }}">{{ verify_url }}</a>
    <br /><br />
    - {{ site_author }}
  </p>
</div>
""",
    text_body="""\
Hello, {{ email }}!

Open the following link to verify your new email change:

{{ verify_url }}

- {{ site_author }}
""",
)

BUILTIN_TEMPLATES: dict[str, EmailTemplate] = {
    template.name: template
    for template in (VERIFY_LOGIN, EMAIL_CHANGE_REQUESTED, VERIFY_EMAIL_CHANGE)
}
