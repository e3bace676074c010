"""Email change lifecycle: request a new address, then confirm it.

States: none -> pending -> confirmed | expired.

The request step checks the three places an address can be claimed (users,
pending logins, pending email changes). These checks run one after another
and are not atomic; the per-table unique indexes reject same-table races at
insert time, but a login request and an email change racing for the same
address across tables can both succeed.
"""

from urllib.parse import urlencode

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
from nonceauth.domain.entities.email_change_token import EmailChangeToken
from nonceauth.domain.entities.user import User
from nonceauth.domain.services.email_validator import require_email_address
from nonceauth.infrastructure.auth.secret_codec import SecretCodec
from nonceauth.infrastructure.persistence.repositories.email_change_token_repository import (
    EmailChangeTokenRepository,
)
from nonceauth.infrastructure.persistence.repositories.login_token_repository import (
    LoginTokenRepository,
)
from nonceauth.infrastructure.persistence.repositories.user_repository import UserRepository
from nonceauth.infrastructure.persistence.store import UniqueConstraintError
from nonceauth.infrastructure.services.email.templates import (
    EMAIL_CHANGE_REQUESTED,
    VERIFY_EMAIL_CHANGE,
)
from nonceauth.infrastructure.services.email_service import EmailService

logger = get_logger(__name__)

FIELD = "new_email_address"
TAKEN_MESSAGE = "This email address is taken."
UNAVAILABLE_MESSAGE = "This email address is temporarily unavailable. Try again later."
PENDING_MESSAGE = "An email change is already pending for this account."
UNSUCCESSFUL_MESSAGE = "Email Change Unsuccessful."


def _conflict(message: str, code: str) -> ConflictError:
    return ConflictError(message, details=[ErrorDetail(field=FIELD, message=message, code=code)])


class EmailChangeService:
    """Issues and confirms email change tokens."""

    def __init__(
        self,
        session: AsyncSession,
        email_change_repo: EmailChangeTokenRepository,
        login_token_repo: LoginTokenRepository,
        user_repo: UserRepository,
        email_service: EmailService,
        config: AuthConfig,
        codec: SecretCodec,
        verify_endpoint: str,
    ) -> None:
        """Initialize the email change service.

        Args:
            session: SQLAlchemy async session.
            email_change_repo: Repository for email change tokens.
            login_token_repo: Repository for login tokens.
            user_repo: Repository for user operations.
            email_service: Sends the notice and the verification link.
            config: Token lifetime.
            codec: Generates and hashes the slug.
            verify_endpoint: Absolute URL the verification link points at.
        """
        self.session = session
        self.email_change_repo = email_change_repo
        self.login_token_repo = login_token_repo
        self.user_repo = user_repo
        self.email_service = email_service
        self.config = config
        self.codec = codec
        self.verify_endpoint = verify_endpoint

    def verify_url(self, slug: str) -> str:
        return f"{self.verify_endpoint}?{urlencode({'slug': slug})}"

    async def request_change(self, user: User, new_email_address: str) -> EmailChangeToken:
        """Start moving ``user`` to ``new_email_address``.

        Sends an informational notice to the current address and a
        verification link to the new one.

        Returns:
            The pending token (without its slug).

        Raises:
            ValidationError: If the address is malformed.
            ConflictError: If the address is owned or claimed, or the user
                already has a pending change.
            TransportError: If either email could not be sent. No token is
                left behind.
        """
        require_email_address(new_email_address, field=FIELD)

        if await self.email_change_repo.get_for_user(user.id) is not None:
            raise _conflict(PENDING_MESSAGE, "pending")
        if await self.user_repo.email_exists(new_email_address):
            raise _conflict(TAKEN_MESSAGE, "taken")
        if await self.login_token_repo.exists_for_email(new_email_address):
            raise _conflict(UNAVAILABLE_MESSAGE, "unavailable")
        if await self.email_change_repo.exists_for_new_email(new_email_address):
            raise _conflict(UNAVAILABLE_MESSAGE, "unavailable")

        entity, slug = EmailChangeToken.generate(
            user_id=user.id,
            email_address=user.email_address,
            new_email_address=new_email_address,
            ttl=self.config.token_ttl,
            codec=self.codec,
        )
        try:
            token = await self.email_change_repo.create(entity)
        except UniqueConstraintError as e:
            if "email_address" in e.fields:
                raise _conflict(PENDING_MESSAGE, "pending")
            raise _conflict(UNAVAILABLE_MESSAGE, "unavailable")
        await self.session.commit()

        try:
            await self.email_service.send(EMAIL_CHANGE_REQUESTED.name, token.email_address)
            await self.email_service.send(
                VERIFY_EMAIL_CHANGE.name,
                token.new_email_address,
                {"verify_url": self.verify_url(slug)},
            )
        except TransportError:
            await self.email_change_repo.delete(token.id)
            await self.session.commit()
            logger.warning("Email change token discarded after email failure", user_id=user.id)
            raise

        logger.info(
            "Email change requested",
            token_id=token.id,
            user_id=user.id,
            new_email_address=new_email_address,
        )
        return token

    async def authenticate(self, user: User, slug: str | None) -> User:
        """Confirm a pending change with the slug from the verification link.

        The user's address is updated before the token is deleted, so a retry
        after a failure between the two writes finds the same token and
        completes.

        Returns:
            The user with the new address.

        Raises:
            NotFoundError: If the user has no pending change.
            AuthenticationError: If the slug does not match. Nothing changes.
            ConflictError: If the new address was taken by another user since
                the request.
        """
        token = await self.email_change_repo.get_for_user(user.id)
        if token is None:
            raise NotFoundError(UNSUCCESSFUL_MESSAGE)

        if not token.check(slug, self.codec):
            logger.info("Email change verification rejected", user_id=user.id, token_id=token.id)
            raise AuthenticationError(UNSUCCESSFUL_MESSAGE)

        old_email_address = user.email_address
        if user.email_address != token.new_email_address:
            user.email_address = token.new_email_address
            try:
                saved = await self.user_repo.save(user)
            except UniqueConstraintError:
                user.email_address = old_email_address
                raise _conflict(TAKEN_MESSAGE, "taken")
            if saved is None:
                raise NotFoundError(UNSUCCESSFUL_MESSAGE)
            await self.session.commit()

        await self.email_change_repo.delete(token.id)
        await self.session.commit()

        logger.info(
            "Email address changed",
            user_id=user.id,
            old_email_address=token.email_address,
            new_email_address=token.new_email_address,
        )
        return user
