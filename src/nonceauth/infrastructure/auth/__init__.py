"""Authentication infrastructure components.

This module provides secret generation and hashing, and the JWT service that
signs session bearer tokens.
"""

from nonceauth.infrastructure.auth.jwt_service import (
    InvalidTokenError,
    JWTError,
    JWTService,
    SessionClaims,
    TokenExpiredError,
)
from nonceauth.infrastructure.auth.secret_codec import SecretCodec, secret_codec

__all__ = [
    "InvalidTokenError",
    "JWTError",
    "JWTService",
    "SecretCodec",
    "SessionClaims",
    "TokenExpiredError",
    "secret_codec",
]
