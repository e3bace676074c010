"""Account deletion."""

from sqlalchemy.ext.asyncio import AsyncSession

from nonceauth.core.exceptions import ErrorDetail, ValidationError
from nonceauth.core.logging import get_logger
from nonceauth.domain.entities.user import User
from nonceauth.infrastructure.persistence.repositories.email_change_token_repository import (
    EmailChangeTokenRepository,
)
from nonceauth.infrastructure.persistence.repositories.user_repository import UserRepository

logger = get_logger(__name__)

CONSENT_MESSAGE = "Account deletion requires explicit consent."


class AccountService:
    """Deletes accounts together with their pending email changes."""

    def __init__(
        self,
        session: AsyncSession,
        user_repo: UserRepository,
        email_change_repo: EmailChangeTokenRepository,
    ) -> None:
        self.session = session
        self.user_repo = user_repo
        self.email_change_repo = email_change_repo

    async def delete_account(self, user: User, consent: object) -> None:
        """Delete ``user`` permanently.

        Deleting the user also ends every session, since the session list
        lives on the user record.

        Args:
            user: The account to delete.
            consent: Must be exactly ``True``.

        Raises:
            ValidationError: If consent was not given.
        """
        if consent is not True:
            raise ValidationError(
                CONSENT_MESSAGE,
                details=[ErrorDetail(field="consent", message=CONSENT_MESSAGE, code="required")],
            )

        tokens = await self.email_change_repo.delete_for_user(user.id, user.email_address)
        await self.user_repo.delete(user.id)
        await self.session.commit()

        logger.info("Account deleted", user_id=user.id, email_change_tokens=tokens)
