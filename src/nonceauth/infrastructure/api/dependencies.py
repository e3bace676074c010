"""FastAPI dependencies.

Builds the lifecycle services per request from the request's database
session and the application settings, and resolves the bearer credential
on protected routes.
"""

from typing import Annotated

from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from nonceauth.core.config import AuthConfig, Settings, get_settings
from nonceauth.core.exceptions import AuthenticationError
from nonceauth.core.logging import get_logger
from nonceauth.domain.entities.session import AuthenticatedSession
from nonceauth.domain.services import (
    AccountService,
    EmailChangeService,
    LoginTokenService,
    SessionService,
)
from nonceauth.infrastructure.auth import JWTService, SecretCodec, secret_codec
from nonceauth.infrastructure.persistence.database import get_db_session
from nonceauth.infrastructure.persistence.repositories import (
    EmailChangeTokenRepository,
    LoginTokenRepository,
    UserRepository,
)
from nonceauth.infrastructure.services.email_service import EmailService

logger = get_logger(__name__)


def get_app_settings(request: Request) -> Settings:
    """Settings the application was created with."""
    return getattr(request.app.state, "settings", None) or get_settings()


SettingsDep = Annotated[Settings, Depends(get_app_settings)]
DBSession = Annotated[AsyncSession, Depends(get_db_session)]


def get_auth_config(settings: SettingsDep) -> AuthConfig:
    return settings.auth_config


def get_secret_codec() -> SecretCodec:
    return secret_codec


def get_jwt_service(settings: SettingsDep) -> JWTService:
    return JWTService(secret_key=settings.secret_key)


def get_email_service(request: Request, settings: SettingsDep) -> EmailService:
    """Return the email service built at startup, or build one from settings."""
    email_service = getattr(request.app.state, "email_service", None)
    if email_service is None:
        email_service = EmailService.from_settings(settings)
        request.app.state.email_service = email_service
    return email_service


AuthConfigDep = Annotated[AuthConfig, Depends(get_auth_config)]
CodecDep = Annotated[SecretCodec, Depends(get_secret_codec)]
JWTServiceDep = Annotated[JWTService, Depends(get_jwt_service)]
EmailServiceDep = Annotated[EmailService, Depends(get_email_service)]


def get_session_service(
    session: DBSession,
    config: AuthConfigDep,
    jwt: JWTServiceDep,
    codec: CodecDep,
) -> SessionService:
    return SessionService(
        session=session,
        user_repo=UserRepository(session),
        config=config,
        jwt_service=jwt,
        codec=codec,
    )


SessionServiceDep = Annotated[SessionService, Depends(get_session_service)]


def get_login_token_service(
    session: DBSession,
    session_service: SessionServiceDep,
    email_service: EmailServiceDep,
    config: AuthConfigDep,
    codec: CodecDep,
) -> LoginTokenService:
    return LoginTokenService(
        session=session,
        login_token_repo=LoginTokenRepository(session),
        email_change_repo=EmailChangeTokenRepository(session),
        user_repo=session_service.user_repo,
        session_service=session_service,
        email_service=email_service,
        config=config,
        codec=codec,
    )


def get_email_change_service(
    session: DBSession,
    settings: SettingsDep,
    email_service: EmailServiceDep,
    config: AuthConfigDep,
    codec: CodecDep,
) -> EmailChangeService:
    return EmailChangeService(
        session=session,
        email_change_repo=EmailChangeTokenRepository(session),
        login_token_repo=LoginTokenRepository(session),
        user_repo=UserRepository(session),
        email_service=email_service,
        config=config,
        codec=codec,
        verify_endpoint=f"{settings.public_uri}{settings.api_prefix}/user/verify-change-email",
    )


def get_account_service(session: DBSession) -> AccountService:
    return AccountService(
        session=session,
        user_repo=UserRepository(session),
        email_change_repo=EmailChangeTokenRepository(session),
    )


def parse_bearer(authorization: str | None) -> str:
    """Extract the token from an ``Authorization: Bearer <token>`` header.

    Raises:
        AuthenticationError: If the header is missing or malformed.
    """
    if authorization is None:
        logger.info("Authentication failed: missing Authorization header")
        raise AuthenticationError()

    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        logger.info("Authentication failed: invalid Authorization header format")
        raise AuthenticationError()
    return parts[1]


async def get_current_session(
    session_service: SessionServiceDep,
    authorization: Annotated[str | None, Header()] = None,
) -> AuthenticatedSession:
    """Resolve the bearer credential into the user and the device session.

    Raises:
        AuthenticationError: If the credential is missing, invalid or revoked.
        SessionExpiredError: If the credential has expired.
    """
    token = parse_bearer(authorization)
    return await session_service.verify_bearer(token)


# Type aliases for dependency injection
CurrentSession = Annotated[AuthenticatedSession, Depends(get_current_session)]
LoginTokenServiceDep = Annotated[LoginTokenService, Depends(get_login_token_service)]
EmailChangeServiceDep = Annotated[EmailChangeService, Depends(get_email_change_service)]
AccountServiceDep = Annotated[AccountService, Depends(get_account_service)]
