"""SQLAlchemy model for pending login tokens.

Stores hashes of the login code and nonce issued for an email address.
"""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from nonceauth.infrastructure.persistence.database import Base


class LoginTokenModel(Base):
    """SQLAlchemy model for the login_tokens table.

    At most one pending login exists per email address.

    Attributes:
        id: Primary key (UUID string).
        email_address: Address the login was requested for.
        code_hash: Argon2 hash of the emailed login code.
        nonce_hash: Argon2 hash of the nonce returned to the requesting client.
        created_at: Timestamp when the token was created.
        expires_at: Timestamp after which the token is treated as absent.
    """

    __tablename__ = "login_tokens"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
        comment="Token ID (UUID)",
    )
    email_address: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
        index=True,
        comment="Email address requesting the login",
    )
    code_hash: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
        comment="Argon2 hash of the login code",
    )
    nonce_hash: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
        comment="Argon2 hash of the login nonce",
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

    def __repr__(self) -> str:
        return f"<LoginToken(id={self.id}, email_address={self.email_address})>"
