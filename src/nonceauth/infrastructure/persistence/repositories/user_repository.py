"""User repository for database operations."""

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from nonceauth.domain.entities.user import User
from nonceauth.infrastructure.persistence.models import UserModel
from nonceauth.infrastructure.persistence.store import flush_unique


class UserRepository:
    """Repository for user database operations."""

    COLLECTION = "users"

    def __init__(self, session: AsyncSession) -> None:
        """Initialize the repository.

        Args:
            session: SQLAlchemy async session.
        """
        self.session = session

    @staticmethod
    def _to_entity(model: UserModel) -> User:
        return User(
            id=model.id,
            email_address=model.email_address,
            session_nonces=list(model.session_nonces or []),
            verified=model.verified,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    async def create(self, user: User) -> User:
        """Insert a new user.

        Raises:
            UniqueConstraintError: If the email address is already taken.
        """
        model = UserModel(
            id=user.id,
            email_address=user.email_address,
            session_nonces=list(user.session_nonces),
            verified=user.verified,
        )
        self.session.add(model)
        await flush_unique(self.session, self.COLLECTION)
        return self._to_entity(model)

    async def get_by_id(self, user_id: str) -> User | None:
        """Get a user by ID.

        Args:
            user_id: User ID (UUID string).

        Returns:
            User entity if found, None otherwise.
        """
        model = await self.session.get(UserModel, user_id)
        return self._to_entity(model) if model else None

    async def get_by_email(self, email_address: str) -> User | None:
        """Get a user by email address.

        Args:
            email_address: Address to look up.

        Returns:
            User entity if found, None otherwise.
        """
        result = await self.session.execute(
            select(UserModel).where(UserModel.email_address == email_address)
        )
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def email_exists(self, email_address: str) -> bool:
        result = await self.session.execute(
            select(func.count())
            .select_from(UserModel)
            .where(UserModel.email_address == email_address)
        )
        return result.scalar_one() > 0

    async def save(self, user: User) -> User | None:
        """Persist the mutable fields of an existing user.

        Args:
            user: User entity carrying the new state.

        Returns:
            The saved user, or None if it no longer exists.

        Raises:
            UniqueConstraintError: If the new email address is already taken.
        """
        model = await self.session.get(UserModel, user.id)
        if model is None:
            return None
        model.email_address = user.email_address
        # Assign a fresh list so the JSON column is flagged dirty.
        model.session_nonces = list(user.session_nonces)
        model.verified = user.verified
        await flush_unique(self.session, self.COLLECTION)
        return self._to_entity(model)

    async def delete(self, user_id: str) -> bool:
        """Delete a user.

        Returns:
            True if a user was deleted, False if not found.
        """
        model = await self.session.get(UserModel, user_id)
        if model is None:
            return False
        await self.session.delete(model)
        await self.session.flush()
        return True
