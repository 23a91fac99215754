"""
HealthAPI Backend — Custom Exception Hierarchy
================================================

What:  Application-specific exceptions for the credential lifecycle and CRUD.
Why:   Domain errors are raised close to the violated invariant and translated
       into HTTP responses in exactly one place (the global handlers in main.py).
How:   Each exception carries a user-facing message, a server-side context
       dict, an HTTP status code and a machine-readable error code.

Exception Hierarchy:
    HealthApiError (base)
    ├── ValidationError                → 400 validation_error
    ├── UnauthorizedError              → 401 unauthorized
    ├── NotFoundError                  → 404 not_found
    ├── DuplicateEmailError            → 409 duplicate_email
    ├── NotVerifiedError               → 400 not_verified
    ├── AlreadyConfirmedError          → 400 already_confirmed
    ├── AuthenticationFailedError      → 401 authentication_failed
    ├── InvalidTokenError              → 400 invalid_token
    ├── InvalidRefreshTokenError       → 400 invalid_refresh_token
    ├── InvalidVerificationCodeError   → 400 invalid_verification_code
    └── NotificationError              → 503 notification_failed
"""

from typing import Any, Dict, Optional


class HealthApiError(Exception):
    """
    Base exception for all HealthAPI application errors.

    Attributes:
        message:     User-facing error description (safe to return in API response)
        context:     Additional debug info (logged but NOT returned for 5xx)
        status_code: HTTP status used by the global handler
        error_code:  Machine-readable error identifier
    """

    status_code: int = 500
    error_code: str = "server_error"

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
        status_code: Optional[int] = None,
    ):
        self.message = message
        self.context = context or {}
        if status_code is not None:
            # Per-instance override for routes whose contract maps the same
            # domain error to a different status
            self.status_code = status_code
        super().__init__(self.message)


class ValidationError(HealthApiError):
    """Client input failed a business rule the schema cannot express."""

    status_code = 400
    error_code = "validation_error"

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class UnauthorizedError(HealthApiError):
    """Missing, malformed or expired bearer token, or its user no longer exists."""

    status_code = 401
    error_code = "unauthorized"

    def __init__(
        self,
        message: str = "Authentication credentials were missing or invalid",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(HealthApiError):
    """
    Raised when a requested resource does not exist.

    SQLAlchemy returns None for missing records; services convert that into
    this exception so the HTTP layer never inspects query results.
    """

    status_code = 404
    error_code = "not_found"

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        message: Optional[str] = None,
    ):
        if message is None:
            message = f"The requested {resource} was not found"
            if resource_id:
                message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class DuplicateEmailError(HealthApiError):
    """An account with this email address already exists."""

    status_code = 409
    error_code = "duplicate_email"

    def __init__(
        self,
        message: str = "user with given email address already exists",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotVerifiedError(HealthApiError):
    """The account exists but its email address has not been confirmed yet."""

    status_code = 400
    error_code = "not_verified"

    def __init__(
        self,
        message: str = "user with given email is not verified",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class AlreadyConfirmedError(HealthApiError):
    """The email address was confirmed before; confirmation is single-use."""

    status_code = 400
    error_code = "already_confirmed"

    def __init__(
        self,
        message: str = "user with given email is already confirmed",
        context: Optional[Dict[str, Any]] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message=message, context=context, status_code=status_code)


class AuthenticationFailedError(HealthApiError):
    """Password did not match the stored hash."""

    status_code = 401
    error_code = "authentication_failed"

    def __init__(
        self,
        message: str = "invalid email or password",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class InvalidTokenError(HealthApiError):
    """
    A signed token failed verification.

    Covers bad signature, malformed token, wrong kind and expiry in the past.
    The reason is kept in context for logs only.
    """

    status_code = 400
    error_code = "invalid_token"

    def __init__(
        self,
        message: str = "token is invalid or has expired",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class InvalidRefreshTokenError(HealthApiError):
    """
    Refresh token does not verify or is not among the user's live sessions.

    Raised on replay of a rotated token, after logout, and after a password
    reset revoked every session.
    """

    status_code = 400
    error_code = "invalid_refresh_token"

    def __init__(
        self,
        message: str = "refresh token is invalid",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class InvalidVerificationCodeError(HealthApiError):
    """Password reset code is missing, wrong or expired."""

    status_code = 400
    error_code = "invalid_verification_code"

    def __init__(
        self,
        message: str = "verification code is invalid or has expired",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotificationError(HealthApiError):
    """
    Raised when an email could not be delivered after all retries.

    HTTP 503: the mail relay is temporarily unavailable and the client may
    retry the request later. The request transaction is rolled back.
    """

    status_code = 503
    error_code = "notification_failed"

    def __init__(
        self,
        message: str = "Email delivery is temporarily unavailable. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)

