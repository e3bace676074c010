"""Session manager: per-device session nonces embedded in bearer tokens.

Each successful login appends the hash of a fresh random nonce to the user's
session list and mints a JWT carrying the raw nonce. A bearer token is only
valid while its nonce's hash is still on that list, so logging out a device
is a matter of removing one entry.
"""

from datetime import timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from nonceauth.core.config import AuthConfig
from nonceauth.core.exceptions import AuthenticationError, SessionExpiredError
from nonceauth.core.logging import get_logger
from nonceauth.domain.entities.session import AuthenticatedSession
from nonceauth.domain.entities.user import User
from nonceauth.infrastructure.auth.jwt_service import (
    InvalidTokenError,
    JWTService,
    TokenExpiredError,
)
from nonceauth.infrastructure.auth.secret_codec import SecretCodec
from nonceauth.infrastructure.persistence.repositories.user_repository import UserRepository

logger = get_logger(__name__)


class SessionService:
    """Creates, verifies and revokes device sessions."""

    def __init__(
        self,
        session: AsyncSession,
        user_repo: UserRepository,
        config: AuthConfig,
        jwt_service: JWTService,
        codec: SecretCodec,
    ) -> None:
        """Initialize the session service.

        Args:
            session: SQLAlchemy async session.
            user_repo: Repository for user operations.
            config: Mode and lifetimes.
            jwt_service: Signs and verifies bearer tokens.
            codec: Generates and hashes session nonces.
        """
        self.session = session
        self.user_repo = user_repo
        self.config = config
        self.jwt_service = jwt_service
        self.codec = codec

    @property
    def session_lifetime(self) -> timedelta:
        return self.config.session_lifetime

    @property
    def expires_in(self) -> int:
        """Session lifetime in whole seconds."""
        return int(self.config.session_lifetime.total_seconds())

    async def create_session(self, user: User) -> str:
        """Start a new device session for ``user``.

        The user's session list is updated in place and persisted.

        Args:
            user: The user logging in.

        Returns:
            The signed bearer token. It is the only place the raw nonce exists.

        Raises:
            AuthenticationError: If the user no longer exists.
        """
        session_id = self.codec.generate_secret()
        user.add_session_nonce(self.codec.hash_secret(session_id))

        saved = await self.user_repo.save(user)
        if saved is None:
            raise AuthenticationError()
        await self.session.commit()

        token = self.jwt_service.create_session_token(
            user_id=user.id,
            session_id=session_id,
            expires_delta=self.config.session_lifetime,
        )
        logger.info("Session created", user_id=user.id, session_count=len(user.session_nonces))
        return token

    async def verify_bearer(self, token: str) -> AuthenticatedSession:
        """Verify a bearer token and resolve its user and session.

        Args:
            token: The encoded JWT presented by the client.

        Returns:
            The user together with the raw session ID the token carries.

        Raises:
            SessionExpiredError: If the token is past its expiry. The expired
                session is removed from the user's list first.
            AuthenticationError: If the token is invalid, the user is missing
                or unverified, or the session was revoked.
        """
        try:
            claims = self.jwt_service.decode_session_claims(token)
        except TokenExpiredError:
            await self._discard_expired_session(token)
            raise SessionExpiredError() from None
        except InvalidTokenError:
            raise AuthenticationError() from None

        user = await self.user_repo.get_by_id(claims.subject_id)
        if user is None or not user.verified:
            raise AuthenticationError()

        if user.find_session(claims.session_id, self.codec) == -1:
            logger.info("Bearer token for revoked session rejected", user_id=user.id)
            raise AuthenticationError()

        return AuthenticatedSession(user=user, session_id=claims.session_id)

    async def _discard_expired_session(self, token: str) -> None:
        """Best-effort removal of the session an expired token belonged to.

        The claims are decoded afresh, still signature-checked but without the
        expiry check. Nothing from the failed verification is reused.
        """
        try:
            claims = self.jwt_service.decode_session_claims(token, verify_exp=False)
        except InvalidTokenError:
            return

        user = await self.user_repo.get_by_id(claims.subject_id)
        if user is None:
            return

        if user.remove_session(claims.session_id, self.codec):
            await self.user_repo.save(user)
            await self.session.commit()
            logger.info("Expired session removed", user_id=user.id)

    async def revoke_session(self, user: User, session_id: str) -> bool:
        """Log out one device.

        Idempotent: revoking a session that is already gone is not an error.

        Args:
            user: The session's owner.
            session_id: Raw session ID from the bearer token.

        Returns:
            True if a session was removed.
        """
        current = await self.user_repo.get_by_id(user.id)
        if current is None:
            return False

        removed = current.remove_session(session_id, self.codec)
        if removed:
            await self.user_repo.save(current)
            await self.session.commit()
            logger.info("Session revoked", user_id=user.id)

        user.session_nonces = current.session_nonces
        return removed

    async def revoke_all_sessions(self, user: User) -> int:
        """Log out every device.

        Returns:
            Number of sessions removed.
        """
        current = await self.user_repo.get_by_id(user.id)
        if current is None:
            return 0

        count = current.clear_sessions()
        await self.user_repo.save(current)
        await self.session.commit()

        user.session_nonces = current.session_nonces
        logger.info("All sessions revoked", user_id=user.id, session_count=count)
        return count
