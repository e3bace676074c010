"""SQLAlchemy model for the users table.

Users are uniquely identified by their email address.
"""

from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from nonceauth.core.clock import utcnow
from nonceauth.infrastructure.persistence.database import Base


class UserModel(Base):
    """SQLAlchemy model for the users table.

    Attributes:
        id: Primary key (UUID string).
        email_address: User's email address (globally unique).
        session_nonces: Hashes of the live per-device session nonces, oldest first.
        verified: Whether the user may authenticate at all.
        created_at: Timestamp when the user was created.
        updated_at: Timestamp when the user was last updated.
    """

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        comment="User ID (UUID)",
    )
    email_address: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
        index=True,
        comment="User email address",
    )
    session_nonces: Mapped[list[str]] = mapped_column(
        JSON,
        nullable=False,
        default=list,
        comment="Argon2 hashes of live session nonces",
    )
    verified: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        comment="Whether the user can log in",
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
    )

    # Relationships
    email_change_tokens: Mapped[list["EmailChangeTokenModel"]] = relationship(  # noqa: F821
        "EmailChangeTokenModel",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email_address={self.email_address})>"
