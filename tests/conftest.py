"""Pytest configuration for all tests."""

import re
from dataclasses import dataclass
from datetime import timedelta
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from argon2 import PasswordHasher
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from nonceauth.core.config import AuthConfig, Mode, Settings
from nonceauth.domain.services import (
    AccountService,
    EmailChangeService,
    LoginTokenService,
    SessionService,
)
from nonceauth.infrastructure.auth.jwt_service import JWTService
from nonceauth.infrastructure.auth.secret_codec import SecretCodec
from nonceauth.infrastructure.persistence import models  # noqa: F401
from nonceauth.infrastructure.persistence.database import Base
from nonceauth.infrastructure.persistence.repositories import (
    EmailChangeTokenRepository,
    LoginTokenRepository,
    UserRepository,
)
from nonceauth.infrastructure.services.email.email_provider import EmailProvider, OutgoingEmail
from nonceauth.infrastructure.services.email_service import EmailService

TEST_SECRET_KEY = "test-secret-key-for-bearer-tokens"
VERIFY_ENDPOINT = "https://auth.example.com/api/user/verify-change-email"


class RecordingEmailProvider(EmailProvider):
    """Email provider that keeps sent messages in memory.

    Attributes:
        sent: Messages delivered so far, oldest first.
        failing_recipients: Addresses for which sending raises.
        report_failure: When set, every send returns False.
    """

    def __init__(self) -> None:
        self.sent: list[OutgoingEmail] = []
        self.failing_recipients: set[str] = set()
        self.report_failure = False

    async def deliver(self, message: OutgoingEmail) -> bool:
        if message.to in self.failing_recipients:
            raise ConnectionError(f"Relay refused {message.to}")
        if self.report_failure:
            return False
        self.sent.append(message)
        return True

    async def test_connection(self) -> tuple[bool, str | None]:
        return True, None

    def messages_to(self, address: str) -> list[OutgoingEmail]:
        return [message for message in self.sent if message.to == address]

    def last_login_code(self, address: str) -> str:
        body = self.messages_to(address)[-1].text_body
        return re.search(r"finish your login: (\S+)", body).group(1)

    def last_slug(self, address: str) -> str:
        body = self.messages_to(address)[-1].text_body
        return re.search(r"slug=([\w-]+)", body).group(1)


@dataclass
class Services:
    """The lifecycle services wired against one database session."""

    config: AuthConfig
    users: UserRepository
    login_tokens: LoginTokenRepository
    email_change_tokens: EmailChangeTokenRepository
    sessions: SessionService
    logins: LoginTokenService
    email_changes: EmailChangeService
    accounts: AccountService


def _enable_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


@pytest_asyncio.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session.

    Uses an in-memory SQLite database with the real unique indexes.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )
    event.listen(engine.sync_engine, "connect", _enable_foreign_keys)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session
        await session.rollback()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def codec() -> SecretCodec:
    """Secret codec with the cheapest Argon2 parameters."""
    return SecretCodec(
        PasswordHasher(time_cost=1, memory_cost=8, parallelism=1, hash_len=16, salt_len=8)
    )


@pytest.fixture
def jwt() -> JWTService:
    return JWTService(secret_key=TEST_SECRET_KEY)


@pytest.fixture
def email_provider() -> RecordingEmailProvider:
    return RecordingEmailProvider()


@pytest.fixture
def email_service(email_provider: RecordingEmailProvider) -> EmailService:
    return EmailService(
        provider=email_provider,
        from_email="noreply@example.com",
        from_name="Example",
        site_title="Example Site",
        site_author="The Example Team",
    )


@pytest.fixture
def build_services(db_session, codec, jwt, email_service):
    """Factory wiring every service for a given mode."""

    def build(mode: Mode = Mode.PRODUCTION, **overrides) -> Services:
        config = AuthConfig(
            mode=mode,
            session_lifetime=overrides.get("session_lifetime", timedelta(hours=48)),
            token_ttl=overrides.get("token_ttl", timedelta(minutes=15)),
        )
        users = UserRepository(db_session)
        login_tokens = LoginTokenRepository(db_session)
        email_change_tokens = EmailChangeTokenRepository(db_session)
        sessions = SessionService(db_session, users, config, jwt, codec)
        logins = LoginTokenService(
            db_session,
            login_tokens,
            email_change_tokens,
            users,
            sessions,
            email_service,
            config,
            codec,
        )
        email_changes = EmailChangeService(
            db_session,
            email_change_tokens,
            login_tokens,
            users,
            email_service,
            config,
            codec,
            verify_endpoint=VERIFY_ENDPOINT,
        )
        accounts = AccountService(db_session, users, email_change_tokens)
        return Services(
            config=config,
            users=users,
            login_tokens=login_tokens,
            email_change_tokens=email_change_tokens,
            sessions=sessions,
            logins=logins,
            email_changes=email_changes,
            accounts=accounts,
        )

    return build


@pytest.fixture
def production(build_services) -> Services:
    return build_services(Mode.PRODUCTION)


@pytest.fixture
def development(build_services) -> Services:
    return build_services(Mode.DEVELOPMENT)


@pytest.fixture
def settings() -> Settings:
    """Settings for API tests: testing environment, development mode."""
    return Settings(
        _env_file=None,
        environment="testing",
        secret_key=TEST_SECRET_KEY,
        force_https=False,
        site_uri="https://auth.example.com",
        site_title="Example Site",
        site_author="The Example Team",
    )


@pytest_asyncio.fixture
async def client(
    db_session: AsyncSession,
    settings: Settings,
    email_service: EmailService,
    codec: SecretCodec,
) -> AsyncGenerator[AsyncClient, None]:
    """Create a test client with overridden database and codec dependencies."""
    from nonceauth.infrastructure.api.app import create_app
    from nonceauth.infrastructure.api.dependencies import get_secret_codec
    from nonceauth.infrastructure.persistence.database import get_db_session

    app = create_app(settings, email_service=email_service)
    app.dependency_overrides[get_db_session] = lambda: db_session
    app.dependency_overrides[get_secret_codec] = lambda: codec

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides = {}
