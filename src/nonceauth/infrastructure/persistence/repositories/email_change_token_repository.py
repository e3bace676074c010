"""Repository for pending email change tokens."""

from datetime import datetime

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from nonceauth.core.clock import utcnow
from nonceauth.domain.entities.email_change_token import EmailChangeToken
from nonceauth.infrastructure.persistence.models import EmailChangeTokenModel
from nonceauth.infrastructure.persistence.store import bulk_delete, flush_unique


class EmailChangeTokenRepository:
    """Repository for email change token database operations."""

    COLLECTION = "email_change_tokens"

    def __init__(self, session: AsyncSession) -> None:
        """Initialize the repository.

        Args:
            session: SQLAlchemy async session.
        """
        self.session = session

    def _to_model(self, entity: EmailChangeToken) -> EmailChangeTokenModel:
        """Convert domain entity to infrastructure model."""
        return EmailChangeTokenModel(
            id=entity.id,
            user_id=entity.user_id,
            email_address=entity.email_address,
            new_email_address=entity.new_email_address,
            slug_hash=entity.slug_hash,
            authenticated=entity.authenticated,
            created_at=entity.created_at,
            expires_at=entity.expires_at,
        )

    def _to_entity(self, model: EmailChangeTokenModel) -> EmailChangeToken:
        """Convert infrastructure model to domain entity."""
        return EmailChangeToken(
            id=model.id,
            user_id=model.user_id,
            email_address=model.email_address,
            new_email_address=model.new_email_address,
            slug_hash=model.slug_hash,
            authenticated=model.authenticated,
            created_at=model.created_at,
            expires_at=model.expires_at,
        )

    async def create(self, entity: EmailChangeToken) -> EmailChangeToken:
        """Store a new email change token.

        Expired tokens still holding either address, or owned by the same
        user, are removed first.

        Raises:
            UniqueConstraintError: If a live token already holds either address.
        """
        await self.session.execute(
            bulk_delete(EmailChangeTokenModel).where(
                or_(
                    EmailChangeTokenModel.email_address == entity.email_address,
                    EmailChangeTokenModel.new_email_address == entity.new_email_address,
                    EmailChangeTokenModel.user_id == entity.user_id,
                ),
                EmailChangeTokenModel.expires_at <= utcnow(),
            )
        )
        model = self._to_model(entity)
        self.session.add(model)
        await flush_unique(self.session, self.COLLECTION)
        return self._to_entity(model)

    async def get_for_user(self, user_id: str) -> EmailChangeToken | None:
        """Get the live email change token owned by a user.

        Args:
            user_id: The owning user's ID.

        Returns:
            The EmailChangeToken entity if found and unexpired, None otherwise.
        """
        result = await self.session.execute(
            select(EmailChangeTokenModel).where(
                EmailChangeTokenModel.user_id == user_id,
                EmailChangeTokenModel.expires_at > utcnow(),
            )
        )
        model = result.scalars().first()
        return self._to_entity(model) if model else None

    async def exists_for_new_email(self, new_email_address: str) -> bool:
        """Whether a live token targets ``new_email_address``."""
        result = await self.session.execute(
            select(func.count())
            .select_from(EmailChangeTokenModel)
            .where(
                EmailChangeTokenModel.new_email_address == new_email_address,
                EmailChangeTokenModel.expires_at > utcnow(),
            )
        )
        return result.scalar_one() > 0

    async def delete(self, token_id: str) -> bool:
        """Delete an email change token.

        Returns:
            True if the token was deleted, False if not found.
        """
        result = await self.session.execute(
            bulk_delete(EmailChangeTokenModel).where(EmailChangeTokenModel.id == token_id)
        )
        return result.rowcount > 0

    async def delete_for_user(self, user_id: str, email_address: str) -> int:
        """Delete every token owned by the user or requested from their address.

        Expired tokens are included.

        Returns:
            Number of tokens deleted.
        """
        result = await self.session.execute(
            bulk_delete(EmailChangeTokenModel).where(
                or_(
                    EmailChangeTokenModel.user_id == user_id,
                    EmailChangeTokenModel.email_address == email_address,
                )
            )
        )
        return result.rowcount

    async def delete_expired(self, now: datetime | None = None) -> int:
        """Delete all expired email change tokens.

        Returns:
            Number of tokens deleted.
        """
        result = await self.session.execute(
            bulk_delete(EmailChangeTokenModel).where(
                EmailChangeTokenModel.expires_at <= (now or utcnow())
            )
        )
        return result.rowcount
