"""Persistence repositories for database operations."""

from nonceauth.infrastructure.persistence.repositories.email_change_token_repository import (
    EmailChangeTokenRepository,
)
from nonceauth.infrastructure.persistence.repositories.login_token_repository import (
    LoginTokenRepository,
)
from nonceauth.infrastructure.persistence.repositories.user_repository import (
    UserRepository,
)

__all__ = [
    "EmailChangeTokenRepository",
    "LoginTokenRepository",
    "UserRepository",
]
