"""Pydantic schemas for the HTTP API."""

from nonceauth.infrastructure.api.schemas.user_schemas import (
    DeleteAccountRequest,
    ErrorBody,
    ErrorDetailResponse,
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

__all__ = [
    "DeleteAccountRequest",
    "ErrorBody",
    "ErrorDetailResponse",
    "ErrorResponse",
    "LoginResponse",
    "LogoutAllResponse",
    "MessageResponse",
    "RequestEmailChangeRequest",
    "RequestLoginRequest",
    "RequestLoginResponse",
    "UserResponse",
    "VerifyEmailChangeResponse",
    "VerifyLoginRequest",
]
