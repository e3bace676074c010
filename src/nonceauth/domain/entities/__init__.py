"""Domain entities for NonceAuth."""

from nonceauth.domain.entities.email_change_token import EmailChangeToken
from nonceauth.domain.entities.login_token import LoginSecrets, LoginToken
from nonceauth.domain.entities.session import (
    AuthenticatedLogin,
    AuthenticatedSession,
    LoginRequestResult,
)
from nonceauth.domain.entities.user import User

__all__ = [
    "AuthenticatedLogin",
    "AuthenticatedSession",
    "EmailChangeToken",
    "LoginSecrets",
    "LoginRequestResult",
    "LoginToken",
    "User",
]
