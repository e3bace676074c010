"""Login token lifecycle: request a one-time login, then redeem it.

States: none -> pending -> redeemed | expired.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from nonceauth.core.config import AuthConfig
from nonceauth.core.exceptions import (
    AuthenticationError,
    ConflictError,
    ErrorDetail,
    NotFoundError,
    TransportError,
)
from nonceauth.core.logging import get_logger
from nonceauth.domain.entities.login_token import LoginToken
from nonceauth.domain.entities.session import AuthenticatedLogin, LoginRequestResult
from nonceauth.domain.entities.user import User
from nonceauth.domain.services.email_validator import require_email_address
from nonceauth.domain.services.session_service import SessionService
from nonceauth.infrastructure.auth.secret_codec import SecretCodec
from nonceauth.infrastructure.persistence.repositories.email_change_token_repository import (
    EmailChangeTokenRepository,
)
from nonceauth.infrastructure.persistence.repositories.login_token_repository import (
    LoginTokenRepository,
)
from nonceauth.infrastructure.persistence.repositories.user_repository import UserRepository
from nonceauth.infrastructure.persistence.store import UniqueConstraintError
from nonceauth.infrastructure.services.email.templates import VERIFY_LOGIN
from nonceauth.infrastructure.services.email_service import EmailService

logger = get_logger(__name__)

UNAVAILABLE_MESSAGE = "This email address is temporarily unavailable."


def _unavailable() -> ConflictError:
    return ConflictError(
        UNAVAILABLE_MESSAGE,
        details=[ErrorDetail(field="email_address", message=UNAVAILABLE_MESSAGE, code="unavailable")],
    )


class LoginTokenService:
    """Issues and redeems login tokens."""

    def __init__(
        self,
        session: AsyncSession,
        login_token_repo: LoginTokenRepository,
        email_change_repo: EmailChangeTokenRepository,
        user_repo: UserRepository,
        session_service: SessionService,
        email_service: EmailService,
        config: AuthConfig,
        codec: SecretCodec,
    ) -> None:
        """Initialize the login token service.

        Args:
            session: SQLAlchemy async session.
            login_token_repo: Repository for login tokens.
            email_change_repo: Repository for email change tokens.
            user_repo: Repository for user operations.
            session_service: Mints the session on a successful login.
            email_service: Sends the login code.
            config: Mode and token lifetime.
            codec: Generates and hashes the login secrets.
        """
        self.session = session
        self.login_token_repo = login_token_repo
        self.email_change_repo = email_change_repo
        self.user_repo = user_repo
        self.session_service = session_service
        self.email_service = email_service
        self.config = config
        self.codec = codec

    async def request_login(self, email_address: str) -> LoginRequestResult:
        """Issue a login token and email its code.

        Args:
            email_address: Address to log in as.

        Returns:
            The nonce for the requesting client, plus the code in development.

        Raises:
            ValidationError: If the address is malformed.
            ConflictError: If a login is already pending for the address, or a
                pending email change targets it.
            TransportError: If the email could not be sent. No token is left
                behind.
        """
        require_email_address(email_address)

        if await self.login_token_repo.exists_for_email(email_address):
            raise _unavailable()
        if await self.email_change_repo.exists_for_new_email(email_address):
            raise _unavailable()

        entity, secrets = LoginToken.generate(email_address, self.config.token_ttl, self.codec)
        try:
            token = await self.login_token_repo.create(entity)
        except UniqueConstraintError:
            raise _unavailable()
        await self.session.commit()

        try:
            await self.email_service.send(VERIFY_LOGIN.name, email_address, {"code": secrets.code})
        except TransportError:
            await self.login_token_repo.delete(token.id)
            await self.session.commit()
            logger.warning("Login token discarded after email failure", email_address=email_address)
            raise

        logger.info("Login token issued", token_id=token.id, email_address=email_address)
        return LoginRequestResult(
            email_address=email_address,
            nonce=secrets.nonce,
            code=secrets.code if self.config.mode.exposes_login_code else None,
        )

    async def authenticate(self, email_address: str, code: str | None, nonce: str | None) -> AuthenticatedLogin:
        """Redeem a login token.

        In production the token is consumed by the first attempt whatever the
        outcome. In development a failed attempt leaves it in place.

        Args:
            email_address: Address the login was requested for.
            code: Code from the email.
            nonce: Nonce returned by the login request.

        Returns:
            The user, a bearer token, and its lifetime in seconds.

        Raises:
            NotFoundError: If no login is pending for the address.
            AuthenticationError: If the code or nonce does not match.
        """
        token = await self.login_token_repo.get_by_email(email_address) if email_address else None
        if token is None:
            raise NotFoundError()

        single_attempt = self.config.mode.single_attempt_login
        if single_attempt:
            await self.login_token_repo.delete(token.id)
            await self.session.commit()

        if not token.check(code, nonce, self.codec):
            logger.info(
                "Login attempt rejected",
                token_id=token.id,
                email_address=email_address,
                consumed=single_attempt,
            )
            raise AuthenticationError("The authentication provided is invalid.")

        if not single_attempt:
            await self.login_token_repo.delete(token.id)
            await self.session.commit()

        user, created = await self._find_or_create_user(email_address)
        if not user.verified:
            raise AuthenticationError()

        bearer = await self.session_service.create_session(user)
        logger.info("Login token redeemed", user_id=user.id, created_user=created)
        return AuthenticatedLogin(
            user=user,
            token=bearer,
            expires_in=self.session_service.expires_in,
            created_user=created,
        )

    async def _find_or_create_user(self, email_address: str) -> tuple[User, bool]:
        user = await self.user_repo.get_by_email(email_address)
        if user is not None:
            return user, False

        try:
            user = await self.user_repo.create(User(email_address=email_address))
        except UniqueConstraintError:
            # Lost a signup race; the winner's record is the user.
            user = await self.user_repo.get_by_email(email_address)
            if user is None:
                raise _unavailable()
            return user, False

        await self.session.commit()
        logger.info("User created", user_id=user.id, email_address=email_address)
        return user, True
