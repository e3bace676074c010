"""SQLAlchemy model for pending email change tokens."""

import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from nonceauth.infrastructure.persistence.database import Base


class EmailChangeTokenModel(Base):
    """SQLAlchemy model for the email_change_tokens table.

    Both the current and the requested address are unique, so one user has at
    most one pending change and one address is the target of at most one.

    Attributes:
        id: Primary key (UUID string).
        user_id: Foreign key to the requesting user.
        email_address: The requester's current address.
        new_email_address: The address the requester wants to switch to.
        slug_hash: Argon2 hash of the verification slug.
        authenticated: Reserved flag, never set by the current flow.
        created_at: Timestamp when the token was created.
        expires_at: Timestamp after which the token is treated as absent.
    """

    __tablename__ = "email_change_tokens"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
        comment="Token ID (UUID)",
    )
    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="Foreign key to users table",
    )
    email_address: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
        index=True,
        comment="Current email address of the requester",
    )
    new_email_address: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
        index=True,
        comment="Requested email address",
    )
    slug_hash: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Argon2 hash of the verification slug",
    )
    authenticated: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )
    expires_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        index=True,
        comment="Timestamp when the token expires",
    )

    # Relationships
    user: Mapped["UserModel"] = relationship(  # noqa: F821
        "UserModel",
        back_populates="email_change_tokens",
    )

    def __repr__(self) -> str:
        return (
            f"<EmailChangeToken(id={self.id}, email_address={self.email_address}, "
            f"new_email_address={self.new_email_address})>"
        )
