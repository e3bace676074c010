"""User API routes.

Login, logout, account deletion and email change. Service errors propagate
to the application's exception handlers, which render the structured error
body.
"""

from fastapi import APIRouter, Query, status

from nonceauth.infrastructure.api.dependencies import (
    AccountServiceDep,
    CurrentSession,
    EmailChangeServiceDep,
    LoginTokenServiceDep,
    SessionServiceDep,
)
from nonceauth.infrastructure.api.schemas import (
    DeleteAccountRequest,
    ErrorResponse,
    LoginResponse,
    LogoutAllResponse,
    MessageResponse,
    RequestEmailChangeRequest,
    RequestLoginRequest,
    RequestLoginResponse,
    UserResponse,
    VerifyEmailChangeResponse,
    VerifyLoginRequest,
)

router = APIRouter()

LOGGED_OUT_MESSAGE = "You are now logged out."


@router.post(
    "/request-login",
    response_model=RequestLoginResponse,
    response_model_exclude_none=True,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid email address"},
        409: {"model": ErrorResponse, "description": "Address temporarily unavailable"},
    },
)
async def request_login(
    body: RequestLoginRequest,
    login_service: LoginTokenServiceDep,
) -> RequestLoginResponse:
    """Start a login.

    Emails a one-time code to the address and returns the nonce that must be
    presented alongside it.
    """
    result = await login_service.request_login(body.email_address)
    return RequestLoginResponse(
        email_address=result.email_address,
        nonce=result.nonce,
        code=result.code,
        message="Check your email for the login verification code.",
    )


@router.post(
    "/verify-login",
    response_model=LoginResponse,
    responses={
        401: {"model": ErrorResponse, "description": "Code or nonce mismatch"},
        404: {"model": ErrorResponse, "description": "No pending login"},
    },
)
async def verify_login(
    body: VerifyLoginRequest,
    login_service: LoginTokenServiceDep,
) -> LoginResponse:
    """Redeem a login and receive a bearer token for this device.

    The first successful login for an address creates the user.
    """
    login = await login_service.authenticate(body.email_address, body.code, body.nonce)
    return LoginResponse(
        token=login.token,
        expires_in=login.expires_in,
        user=UserResponse.from_user(login.user),
    )


@router.get("/me", response_model=UserResponse)
async def me(current: CurrentSession) -> UserResponse:
    """Return the authenticated user."""
    return UserResponse.from_user(current.user)


@router.post("/logout", response_model=MessageResponse)
async def logout(current: CurrentSession, session_service: SessionServiceDep) -> MessageResponse:
    """End the session the presented token belongs to."""
    await session_service.revoke_session(current.user, current.session_id)
    return MessageResponse(message=LOGGED_OUT_MESSAGE)


@router.post("/logout-all", response_model=LogoutAllResponse)
async def logout_all(current: CurrentSession, session_service: SessionServiceDep) -> LogoutAllResponse:
    """End every session of the authenticated user."""
    count = await session_service.revoke_all_sessions(current.user)
    return LogoutAllResponse(message=LOGGED_OUT_MESSAGE, sessions_revoked=count)


@router.delete(
    "/delete",
    response_model=MessageResponse,
    responses={400: {"model": ErrorResponse, "description": "Consent missing"}},
)
async def delete_account(
    body: DeleteAccountRequest,
    current: CurrentSession,
    account_service: AccountServiceDep,
) -> MessageResponse:
    """Delete the authenticated user's account. Requires ``consent: true``."""
    await account_service.delete_account(current.user, body.consent)
    return MessageResponse(message="Your account has been deleted.")


@router.post(
    "/request-change-email",
    status_code=status.HTTP_202_ACCEPTED,
    response_model=MessageResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid email address"},
        409: {"model": ErrorResponse, "description": "Address taken or unavailable"},
    },
)
async def request_change_email(
    body: RequestEmailChangeRequest,
    current: CurrentSession,
    email_change_service: EmailChangeServiceDep,
) -> MessageResponse:
    """Start moving the account to a new address."""
    await email_change_service.request_change(current.user, body.new_email_address)
    return MessageResponse(message="Check your new email inbox for the verification link.")


@router.get(
    "/verify-change-email",
    response_model=VerifyEmailChangeResponse,
    responses={
        401: {"model": ErrorResponse, "description": "Slug mismatch"},
        404: {"model": ErrorResponse, "description": "No pending email change"},
    },
)
async def verify_change_email(
    current: CurrentSession,
    email_change_service: EmailChangeServiceDep,
    slug: str | None = Query(None, description="Slug from the verification link"),
) -> VerifyEmailChangeResponse:
    """Confirm a pending email change."""
    user = await email_change_service.authenticate(current.user, slug)
    return VerifyEmailChangeResponse(
        message="Your account's email address was changed successfully.",
        user=UserResponse.from_user(user),
    )
