"""
HealthAPI Backend — Authentication Schemas
============================================

What:  Request/response contracts for the /auth endpoints.
"""

from typing import Optional

from pydantic import EmailStr, Field, field_validator, model_validator

from app.schemas.common import CamelModel, check_password_policy


class LoginRequest(CamelModel):
    email: EmailStr
    password: str = Field(min_length=1)


class EmailRequest(CamelModel):
    """Body of resend-confirmation and reset-password."""

    email: EmailStr


class TokenRequest(CamelModel):
    """Body carrying a refresh token (logout, token refresh)."""

    refresh_token: str = Field(min_length=1, description="Refresh token issued by login or refresh")


class TokenPairResponse(CamelModel):
    """
    What:  Access + refresh token pair returned by login and refresh.

    accessToken is sent as `Authorization: Bearer <token>`;
    refreshToken is exchanged at PATCH /auth/tokens and is rotated on each use.
    """

    access_token: str = Field(description="Short-lived bearer token")
    refresh_token: str = Field(description="Long-lived, single-use refresh token")


class UpdateCredentialsRequest(CamelModel):
    """Body of PATCH /auth/credentials; at least one field is required."""

    email: Optional[EmailStr] = None
    password: Optional[str] = None

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return check_password_policy(v)

    @model_validator(mode="after")
    def require_change(self) -> "UpdateCredentialsRequest":
        if self.email is None and self.password is None:
            raise ValueError("provide an email, a password, or both")
        return self


class ResetPasswordConfirmRequest(CamelModel):
    """Body of PATCH /auth/reset-password-confirm."""

    email: EmailStr
    code: str = Field(pattern=r"^\d{6}$", description="6-digit code received by email")
    password: str = Field(description="New password")

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        return check_password_policy(v)
