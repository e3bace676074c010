"""JWT bearer token service.

Session bearer tokens are HS256 JWTs signed with the server-held secret key.
Each carries the user ID (``sub``), an expiry (``exp``), and the raw per-device
session nonce (``jti``). Only a hash of that nonce is kept server-side.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

import jwt

from nonceauth.core.config import get_settings


class JWTError(Exception):
    """Base exception for JWT-related errors."""

    pass


class TokenExpiredError(JWTError):
    """Raised when a token has expired."""

    pass


class InvalidTokenError(JWTError):
    """Raised when a token is invalid."""

    pass


@dataclass(frozen=True)
class SessionClaims:
    """The claims a session bearer token carries."""

    subject_id: str
    session_id: str
    expires_at: datetime


class JWTService:
    """Service for minting and validating session bearer tokens."""

    ALGORITHM = "HS256"
    ISSUER = "nonceauth"
    REQUIRED_CLAIMS = ("sub", "exp", "jti")

    def __init__(self, secret_key: str | None = None) -> None:
        """Initialize the JWT service.

        Args:
            secret_key: Secret key for signing tokens. If not provided,
                        uses the configured secret key from settings.
        """
        self._secret_key = secret_key

    @property
    def secret_key(self) -> str:
        """Get the secret key for signing tokens."""
        if self._secret_key:
            return self._secret_key
        return get_settings().secret_key

    def create_session_token(
        self,
        user_id: str,
        session_id: str,
        expires_delta: timedelta,
        now: datetime | None = None,
    ) -> str:
        """Create a signed session token.

        Args:
            user_id: The user's unique identifier.
            session_id: The raw session nonce for this device.
            expires_delta: How long the token stays valid.
            now: Issue time. Defaults to the current time.

        Returns:
            Encoded JWT.
        """
        issued_at = now or datetime.now(timezone.utc)
        payload = {
            "iss": self.ISSUER,
            "sub": user_id,
            "iat": issued_at,
            "exp": issued_at + expires_delta,
            "jti": session_id,
        }
        return jwt.encode(payload, self.secret_key, algorithm=self.ALGORITHM)

    def decode_token(self, token: str, verify_exp: bool = True) -> dict[str, Any]:
        """Decode and validate a JWT token.

        Args:
            token: The encoded JWT token.
            verify_exp: Whether an expired token is rejected. The signature is
                always verified.

        Returns:
            Decoded token payload.

        Raises:
            TokenExpiredError: If the token has expired.
            InvalidTokenError: If the token is invalid or lacks a required claim.
        """
        try:
            return jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.ALGORITHM],
                issuer=self.ISSUER,
                options={
                    "require": list(self.REQUIRED_CLAIMS),
                    "verify_exp": verify_exp,
                },
            )
        except jwt.ExpiredSignatureError as e:
            raise TokenExpiredError("Token has expired") from e
        except jwt.InvalidTokenError as e:
            raise InvalidTokenError("Invalid token") from e

    def decode_session_claims(self, token: str, verify_exp: bool = True) -> SessionClaims:
        """Decode a token into typed session claims.

        Raises:
            TokenExpiredError: If the token has expired and ``verify_exp`` is set.
            InvalidTokenError: If the token is invalid or a claim is malformed.
        """
        payload = self.decode_token(token, verify_exp=verify_exp)
        subject_id = payload.get("sub")
        session_id = payload.get("jti")
        if not isinstance(subject_id, str) or not subject_id:
            raise InvalidTokenError("Invalid subject claim")
        if not isinstance(session_id, str) or not session_id:
            raise InvalidTokenError("Invalid session claim")
        return SessionClaims(
            subject_id=subject_id,
            session_id=session_id,
            expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
        )
