"""create users, login_tokens and email_change_tokens

Revision ID: 0001
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""

from collections.abc import Sequence

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "users",
        sa.Column("id", sa.String(length=36), nullable=False, comment="User ID (UUID)"),
        sa.Column(
            "email_address",
            sa.String(length=255),
            nullable=False,
            comment="User email address",
        ),
        sa.Column(
            "session_nonces",
            sa.JSON(),
            nullable=False,
            comment="Argon2 hashes of live session nonces",
        ),
        sa.Column(
            "verified",
            sa.Boolean(),
            nullable=False,
            comment="Whether the user can log in",
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_users_email_address"), "users", ["email_address"], unique=True)

    op.create_table(
        "login_tokens",
        sa.Column("id", sa.String(length=36), nullable=False, comment="Token ID (UUID)"),
        sa.Column(
            "email_address",
            sa.String(length=255),
            nullable=False,
            comment="Email address requesting the login",
        ),
        sa.Column(
            "code_hash",
            sa.String(length=255),
            nullable=False,
            comment="Argon2 hash of the login code",
        ),
        sa.Column(
            "nonce_hash",
            sa.String(length=255),
            nullable=False,
            comment="Argon2 hash of the login nonce",
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            "expires_at",
            sa.DateTime(timezone=True),
            nullable=False,
            comment="Timestamp when the token expires",
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("code_hash"),
        sa.UniqueConstraint("nonce_hash"),
    )
    op.create_index(
        op.f("ix_login_tokens_email_address"), "login_tokens", ["email_address"], unique=True
    )
    op.create_index(op.f("ix_login_tokens_expires_at"), "login_tokens", ["expires_at"])

    op.create_table(
        "email_change_tokens",
        sa.Column("id", sa.String(length=36), nullable=False, comment="Token ID (UUID)"),
        sa.Column(
            "user_id",
            sa.String(length=36),
            nullable=False,
            comment="Foreign key to users table",
        ),
        sa.Column(
            "email_address",
            sa.String(length=255),
            nullable=False,
            comment="Current email address of the requester",
        ),
        sa.Column(
            "new_email_address",
            sa.String(length=255),
            nullable=False,
            comment="Requested email address",
        ),
        sa.Column(
            "slug_hash",
            sa.String(length=255),
            nullable=False,
            comment="Argon2 hash of the verification slug",
        ),
        sa.Column("authenticated", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            "expires_at",
            sa.DateTime(timezone=True),
            nullable=False,
            comment="Timestamp when the token expires",
        ),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_email_change_tokens_user_id"), "email_change_tokens", ["user_id"]
    )
    op.create_index(
        op.f("ix_email_change_tokens_email_address"),
        "email_change_tokens",
        ["email_address"],
        unique=True,
    )
    op.create_index(
        op.f("ix_email_change_tokens_new_email_address"),
        "email_change_tokens",
        ["new_email_address"],
        unique=True,
    )
    op.create_index(
        op.f("ix_email_change_tokens_expires_at"), "email_change_tokens", ["expires_at"]
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index(op.f("ix_email_change_tokens_expires_at"), table_name="email_change_tokens")
    op.drop_index(
        op.f("ix_email_change_tokens_new_email_address"), table_name="email_change_tokens"
    )
    op.drop_index(op.f("ix_email_change_tokens_email_address"), table_name="email_change_tokens")
    op.drop_index(op.f("ix_email_change_tokens_user_id"), table_name="email_change_tokens")
    op.drop_table("email_change_tokens")
    op.drop_index(op.f("ix_login_tokens_expires_at"), table_name="login_tokens")
    op.drop_index(op.f("ix_login_tokens_email_address"), table_name="login_tokens")
    op.drop_table("login_tokens")
    op.drop_index(op.f("ix_users_email_address"), table_name="users")
    op.drop_table("users")
