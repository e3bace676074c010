"""Repository for pending login tokens.

Lookups only ever see tokens whose expiry is still in the future.
"""

from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from nonceauth.core.clock import utcnow
from nonceauth.domain.entities.login_token import LoginToken
from nonceauth.infrastructure.persistence.models import LoginTokenModel
from nonceauth.infrastructure.persistence.store import bulk_delete, flush_unique


class LoginTokenRepository:
    """Repository for login token database operations."""

    COLLECTION = "login_tokens"

    def __init__(self, session: AsyncSession) -> None:
        """Initialize the repository.

        Args:
            session: SQLAlchemy async session.
        """
        self.session = session

    def _to_model(self, entity: LoginToken) -> LoginTokenModel:
        """Convert domain entity to infrastructure model."""
        return LoginTokenModel(
            id=entity.id,
            email_address=entity.email_address,
            code_hash=entity.code_hash,
            nonce_hash=entity.nonce_hash,
            created_at=entity.created_at,
            expires_at=entity.expires_at,
        )

    def _to_entity(self, model: LoginTokenModel) -> LoginToken:
        """Convert infrastructure model to domain entity."""
        return LoginToken(
            id=model.id,
            email_address=model.email_address,
            code_hash=model.code_hash,
            nonce_hash=model.nonce_hash,
            created_at=model.created_at,
            expires_at=model.expires_at,
        )

    async def create(self, entity: LoginToken) -> LoginToken:
        """Store a new login token.

        An expired token still holding the address is removed first.

        Raises:
            UniqueConstraintError: If a live token already holds the address.
        """
        await self.session.execute(
            bulk_delete(LoginTokenModel).where(
                LoginTokenModel.email_address == entity.email_address,
                LoginTokenModel.expires_at <= utcnow(),
            )
        )
        model = self._to_model(entity)
        self.session.add(model)
        await flush_unique(self.session, self.COLLECTION)
        return self._to_entity(model)

    async def get_by_email(self, email_address: str) -> LoginToken | None:
        """Get the live login token for an address.

        Args:
            email_address: Address the login was requested for.

        Returns:
            The LoginToken entity if found and unexpired, None otherwise.
        """
        result = await self.session.execute(
            select(LoginTokenModel).where(
                LoginTokenModel.email_address == email_address,
                LoginTokenModel.expires_at > utcnow(),
            )
        )
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def exists_for_email(self, email_address: str) -> bool:
        result = await self.session.execute(
            select(func.count())
            .select_from(LoginTokenModel)
            .where(
                LoginTokenModel.email_address == email_address,
                LoginTokenModel.expires_at > utcnow(),
            )
        )
        return result.scalar_one() > 0

    async def delete(self, token_id: str) -> bool:
        """Delete a login token.

        Returns:
            True if the token was deleted, False if not found.
        """
        result = await self.session.execute(
            bulk_delete(LoginTokenModel).where(LoginTokenModel.id == token_id)
        )
        return result.rowcount > 0

    async def delete_expired(self, now: datetime | None = None) -> int:
        """Delete all expired login tokens.

        Returns:
            Number of tokens deleted.
        """
        result = await self.session.execute(
            bulk_delete(LoginTokenModel).where(LoginTokenModel.expires_at <= (now or utcnow()))
        )
        return result.rowcount
