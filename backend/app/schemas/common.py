"""
HealthAPI Backend — Shared Pydantic Schemas
=============================================

What:  Base model and response envelopes shared by every router.
Why:   Clients consume camelCase JSON (accessToken, createdAt); Python code
       keeps snake_case. The alias generator bridges the two and
       populate_by_name lets clients send either form.
"""

import re
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base for all API schemas: snake_case attributes, camelCase JSON."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# ── Password policy ───────────────────────────────────────────────────────
# 8-24 chars, at least one digit, one lowercase, one uppercase, one special
PASSWORD_MIN_LENGTH = 8
PASSWORD_MAX_LENGTH = 24
# bcrypt only accepts up to 72 bytes of input
PASSWORD_MAX_BYTES = 72
_PASSWORD_RULES = (
    (re.compile(r"\d"), "a number"),
    (re.compile(r"[a-z]"), "a lowercase letter"),
    (re.compile(r"[A-Z]"), "an uppercase letter"),
    (re.compile(r"[^A-Za-z0-9]"), "a special character"),
)


def check_password_policy(value: str) -> str:
    """Pydantic field validator body shared by every schema accepting a password."""
    if not PASSWORD_MIN_LENGTH <= len(value) <= PASSWORD_MAX_LENGTH:
        raise ValueError(
            f"password must be between {PASSWORD_MIN_LENGTH} and "
            f"{PASSWORD_MAX_LENGTH} characters long"
        )
    if len(value.encode("utf-8")) > PASSWORD_MAX_BYTES:
        raise ValueError(f"password must not exceed {PASSWORD_MAX_BYTES} bytes when UTF-8 encoded")
    missing = [label for pattern, label in _PASSWORD_RULES if not pattern.search(value)]
    if missing:
        raise ValueError("password must contain " + ", ".join(missing))
    return value


class MessageResponse(CamelModel):
    """Plain acknowledgement returned by confirmation, logout and reset endpoints."""

    status: str = Field(default="ok", description="Always 'ok' on success")
    message: str = Field(description="Human-readable result")


class ErrorResponse(BaseModel):
    """
    What:  Standardized error response format for all API errors.

    Fields:
        error: Machine-readable error code (e.g., "invalid_refresh_token")
        message: Human-readable description
        details: Optional extra context (only for 4xx)
        request_id: Correlation ID for tracing this error in server logs
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """Health check response showing service and database status."""
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
