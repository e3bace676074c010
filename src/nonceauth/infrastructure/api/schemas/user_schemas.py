"""Pydantic schemas for the user endpoints.

Email addresses are accepted as plain strings; the services validate their
format so that errors come back in the same structured shape as every other
validation failure.
"""

from datetime import datetime

from pydantic import BaseModel, Field, StrictBool

from nonceauth.domain.entities.user import User


class RequestLoginRequest(BaseModel):
    """Request body for starting a login."""

    email_address: str = Field(..., description="Address to log in as")


class RequestLoginResponse(BaseModel):
    """Response for a started login."""

    email_address: str = Field(..., description="Address the code was sent to")
    nonce: str = Field(..., description="Secret to present together with the emailed code")
    code: str | None = Field(None, description="The login code (development mode only)")
    message: str = Field(..., description="Human-readable message")


class VerifyLoginRequest(BaseModel):
    """Request body for redeeming a login."""

    email_address: str = Field(..., description="Address the login was requested for")
    code: str = Field(..., description="Code from the login email")
    nonce: str = Field(..., description="Nonce returned by request-login")


class UserResponse(BaseModel):
    """User information in responses."""

    id: str = Field(..., description="User ID")
    email_address: str = Field(..., description="User's email address")
    verified: bool = Field(..., description="Whether the user may log in")
    created_at: datetime | None = Field(None, description="When the user was created")

    model_config = {"from_attributes": True}

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        return cls(
            id=user.id,
            email_address=user.email_address,
            verified=user.verified,
            created_at=user.created_at,
        )


class LoginResponse(BaseModel):
    """Response for a successful login."""

    token: str = Field(..., description="Bearer token for this device")
    expires_in: int = Field(..., description="Token lifetime in seconds")
    user: UserResponse = Field(..., description="User information")


class MessageResponse(BaseModel):
    """Response carrying only a message."""

    message: str = Field(..., description="Human-readable message")


class LogoutAllResponse(MessageResponse):
    """Response for logging out everywhere."""

    sessions_revoked: int = Field(..., description="Number of sessions ended")


class DeleteAccountRequest(BaseModel):
    """Request body for account deletion."""

    consent: StrictBool | None = Field(None, description="Must be true to delete the account")


class RequestEmailChangeRequest(BaseModel):
    """Request body for starting an email change."""

    new_email_address: str = Field(..., description="Address to switch to")


class VerifyEmailChangeResponse(MessageResponse):
    """Response for a confirmed email change."""

    user: UserResponse = Field(..., description="User with the new address")


class ErrorDetailResponse(BaseModel):
    """Detail for a single field error."""

    field: str = Field(..., description="Field name that failed")
    message: str = Field(..., description="Human-readable error message")
    code: str | None = Field(None, description="Machine-readable error code")


class ErrorBody(BaseModel):
    status: int = Field(..., description="HTTP status code")
    code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error message")
    details: list[ErrorDetailResponse] = Field(default_factory=list)


class ErrorResponse(BaseModel):
    """Body of every error response."""

    error: ErrorBody
