"""Results of successful authentication."""

from dataclasses import dataclass

from nonceauth.domain.entities.user import User


@dataclass(frozen=True)
class AuthenticatedSession:
    """A verified bearer token: the user plus the session it was minted for.

    ``session_id`` is the raw nonce from the token, kept so a logout removes
    exactly this device's entry.
    """

    user: User
    session_id: str


@dataclass(frozen=True)
class AuthenticatedLogin:
    """Outcome of redeeming a login token."""

    user: User
    token: str
    expires_in: int
    created_user: bool = False


@dataclass(frozen=True)
class LoginRequestResult:
    """Outcome of a login request.

    ``code`` is only populated in development mode.
    """

    email_address: str
    nonce: str
    code: str | None = None
