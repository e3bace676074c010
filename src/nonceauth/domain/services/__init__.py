"""Domain services for the token lifecycles."""

from nonceauth.domain.services.account_service import AccountService
from nonceauth.domain.services.email_change_service import EmailChangeService
from nonceauth.domain.services.email_validator import (
    require_email_address,
    validate_email_address,
)
from nonceauth.domain.services.login_token_service import LoginTokenService
from nonceauth.domain.services.session_service import SessionService

__all__ = [
    "AccountService",
    "EmailChangeService",
    "LoginTokenService",
    "SessionService",
    "require_email_address",
    "validate_email_address",
]
