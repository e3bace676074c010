"""SQLAlchemy models for the NonceAuth record store.

All models inherit from the Base class defined in database.py and are
automatically created on application startup outside production.
"""

from nonceauth.infrastructure.persistence.models.email_change_token import (
    EmailChangeTokenModel,
)
from nonceauth.infrastructure.persistence.models.login_token import LoginTokenModel
from nonceauth.infrastructure.persistence.models.user import UserModel

__all__ = [
    "EmailChangeTokenModel",
    "LoginTokenModel",
    "UserModel",
]
