"""Error taxonomy for the token lifecycle services.

Every error carries a user-facing message that is safe to return to a client,
an HTTP status, a stable machine-readable code, and optional per-field
details. Raw secrets and hashes are never placed in any of them.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class ErrorDetail:
    """A single field-level problem attached to an error.

    Attributes:
        field: The offending input field.
        message: Human-readable message.
        code: Machine-readable code.
    """

    field: str
    message: str
    code: str


class NonceAuthError(Exception):
    """Base class for errors the API layer turns into structured responses."""

    status_code: int = 400
    error_code: str = "bad_request"
    default_message: str = "The request could not be completed."

    def __init__(
        self,
        message: str | None = None,
        details: list[ErrorDetail] | None = None,
    ) -> None:
        self.message = message or self.default_message
        self.details = list(details or [])
        super().__init__(self.message)


class ValidationError(NonceAuthError):
    """Malformed, user-correctable input (400)."""

    status_code = 400
    error_code = "validation_error"
    default_message = "There were issues validating your input."


class ConflictError(NonceAuthError):
    """Uniqueness or claim collision (409)."""

    status_code = 409
    error_code = "conflict"
    default_message = "This email address is temporarily unavailable."


class NotFoundError(NonceAuthError):
    """No matching pending token or session (404)."""

    status_code = 404
    error_code = "not_found"
    default_message = "The authentication provided is invalid."


class AuthenticationError(NonceAuthError):
    """Secret mismatch or missing/invalid bearer credential (401)."""

    status_code = 401
    error_code = "unauthorized"
    default_message = "You are not logged in."


class SessionExpiredError(AuthenticationError):
    """Bearer credential past its expiry (401)."""

    error_code = "session_expired"
    default_message = "Your login has expired. Please log in again."


class TransportError(NonceAuthError):
    """Email dispatch failed.

    The message is for logs only. Clients receive a generic failure.
    """

    status_code = 500
    error_code = "server_error"
    default_message = "The email could not be sent."
