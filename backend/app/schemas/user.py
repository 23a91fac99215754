"""
HealthAPI Backend — User Schemas
==================================

What:  Request/response contracts for account registration and retrieval.
Why:   The response model is the only way a User leaves the API, which
       guarantees password_hash and verification codes are never exposed.
"""

import uuid
from datetime import datetime

from pydantic import EmailStr, Field, field_validator

from app.schemas.common import CamelModel, check_password_policy


class RegisterRequest(CamelModel):
    """Body of POST /users."""

    email: EmailStr = Field(description="Login email address")
    password: str = Field(description="8-24 chars with digit, lower, upper and special char")

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        return check_password_policy(v)


class UserResponse(CamelModel):
    """Public representation of an account (no credential material)."""

    id: uuid.UUID = Field(description="Unique user identifier")
    email: str = Field(description="Login email address")
    verified: bool = Field(description="Whether the email address has been confirmed")
    created_at: datetime = Field(description="Registration timestamp (UTC)")
