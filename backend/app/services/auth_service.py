"""
HealthAPI Backend — Auth Service (Credential Lifecycle Orchestrator)
======================================================================

What:  Registration → confirmation → login → refresh → logout → reset.
Why:   The only part of the API with real state transitions and security
       invariants; keeping it in one class makes every rule testable
       without HTTP.
How:   Composes CredentialStore, TokenCodec, PasswordHasher and Mailer,
       all passed in through the constructor.
Who:   Called by the /users and /auth route handlers.

Lifecycle:
    register ──▶ (verified=False) ──confirm──▶ (verified=True)
                                                   │
                        login ◀────────────────────┘
                          │ access + refresh (jti stored)
                          ▼
           refresh: consume old jti, store new jti (rotation)
           logout:  consume one jti (other sessions unaffected)
           reset / credential change: revoke every jti

Error Handling Strategy:
    Preconditions are checked in the order the API contract documents and
    raise domain exceptions (NotFoundError, NotVerifiedError, ...). Nothing
    is committed here; a raised exception rolls back the whole request.
"""

import hmac
import logging
import secrets
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.exceptions import (
    AlreadyConfirmedError,
    AuthenticationFailedError,
    DuplicateEmailError,
    InvalidRefreshTokenError,
    InvalidTokenError,
    InvalidVerificationCodeError,
    NotFoundError,
    NotVerifiedError,
)
from app.models.profile import Profile
from app.models.user import User
from app.services.credential_store import CredentialStore, credential_store
from app.services.email_service import Mailer, mailer
from app.services.password_hasher import PasswordHasher, password_hasher
from app.services.token_codec import TokenCodec, token_codec

logger = logging.getLogger(__name__)

RESET_CODE_DIGITS = 6


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes even for timezone-aware columns
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class AuthService:
    """
    Credential lifecycle operations.

    Responsibilities:
        - register() / send_confirmation() / confirm()
        - login() / refresh() / logout()
        - update_credentials()
        - request_reset() / confirm_reset()
    """

    def __init__(
        self,
        store: CredentialStore,
        tokens: TokenCodec,
        hasher: PasswordHasher,
        mailer: Mailer,
        reset_code_ttl: int = 900,
    ):
        self.store = store
        self.tokens = tokens
        self.hasher = hasher
        self.mailer = mailer
        self.reset_code_ttl = reset_code_ttl

    # ══════════════════════════════════════════════════════════════════════
    # Registration & confirmation
    # ══════════════════════════════════════════════════════════════════════

    async def register(self, db: AsyncSession, email: str, password: str) -> User:
        """
        Create an unverified account and send the confirmation email.

        The password is hashed here, before the row exists, so no code path
        can persist a plaintext password.

        Raises:
            DuplicateEmailError: email already registered (pre-check or
                unique constraint on flush)
            NotificationError: confirmation email could not be delivered
        """
        if await self.store.get_by_email(db, email) is not None:
            raise DuplicateEmailError()

        user = User(
            id=uuid.uuid4(),
            email=email,
            password_hash=self.hasher.hash(password),
            verified=False,
            created_at=datetime.now(timezone.utc),
        )
        await self.store.add_user(db, user)
        db.add(Profile(user_id=user.id))
        await db.flush()
        logger.info("User registered: %s (verified=False)", user.id)

        await self._send_confirmation(user.email)
        return user

    async def send_confirmation(self, db: AsyncSession, email: str) -> None:
        """
        Re-send the confirmation email.

        Raises:
            NotFoundError: no account with this email
            AlreadyConfirmedError: account is already verified
        """
        user = await self._require_user(db, email)
        if user.verified:
            raise AlreadyConfirmedError()
        await self._send_confirmation(user.email)
        logger.info("Confirmation email re-sent for user %s", user.id)

    async def confirm(self, db: AsyncSession, token: str) -> User:
        """
        Mark the account named by a confirmation token as verified.

        Raises:
            InvalidTokenError: bad signature, wrong kind or expired
            NotFoundError: the token's email no longer has an account
            AlreadyConfirmedError: confirmation is single-use
        """
        claims = self.tokens.decode_confirmation_token(token)
        user = await self._require_user(db, claims.subject)
        if user.verified:
            raise AlreadyConfirmedError()
        user.verified = True
        await db.flush()
        logger.info("User %s confirmed", user.id)
        return user

    async def _send_confirmation(self, email: str) -> None:
        issued = self.tokens.issue_confirmation_token(email)
        await self.mailer.send_confirmation(email, issued.token)

    # ══════════════════════════════════════════════════════════════════════
    # Sessions
    # ══════════════════════════════════════════════════════════════════════

    async def login(self, db: AsyncSession, email: str, password: str) -> TokenPair:
        """
        Exchange email + password for an access/refresh token pair.

        Check order: NotFound → NotVerified → AuthenticationFailed.
        """
        user = await self._require_user(db, email)
        if not user.verified:
            raise NotVerifiedError()
        if not self.hasher.verify(password, user.password_hash):
            logger.info("Failed login for user %s", user.id)
            raise AuthenticationFailedError()

        pair = await self._start_session(db, user)
        logger.info("User %s logged in", user.id)
        return pair

    async def refresh(self, db: AsyncSession, refresh_token: str) -> TokenPair:
        """
        Rotate a refresh token: consume the presented jti, issue a new pair.

        A token whose jti is no longer stored (already rotated, logged out or
        revoked by a reset) is rejected, which makes replay detectable.

        Raises:
            InvalidRefreshTokenError: token does not verify or is not live
        """
        user_id, token_id = self._parse_refresh_token(refresh_token)

        if not await self.store.consume_refresh_token(db, user_id, token_id):
            logger.warning("Rejected refresh with non-live token for user %s", user_id)
            raise InvalidRefreshTokenError(context={"user_id": str(user_id)})

        user = await self.store.get_by_id(db, user_id)
        if user is None:
            raise InvalidRefreshTokenError(context={"user_id": str(user_id)})

        pair = await self._start_session(db, user)
        logger.info("Refresh token rotated for user %s", user.id)
        return pair

    async def logout(self, db: AsyncSession, user_id: uuid.UUID, refresh_token: str) -> None:
        """
        End one session of the authenticated user.

        Raises:
            InvalidRefreshTokenError: token does not verify, belongs to
                another user, or is not live
        """
        token_user_id, token_id = self._parse_refresh_token(refresh_token)
        if token_user_id != user_id:
            raise InvalidRefreshTokenError(context={"reason": "token issued to another user"})
        if not await self.store.consume_refresh_token(db, user_id, token_id):
            raise InvalidRefreshTokenError(context={"user_id": str(user_id)})
        logger.info("User %s logged out one session", user_id)

    async def _start_session(self, db: AsyncSession, user: User) -> TokenPair:
        access = self.tokens.issue_access_token(user.id)
        refresh = self.tokens.issue_refresh_token(user.id)
        await self.store.add_refresh_token(
            db,
            user_id=user.id,
            token_id=uuid.UUID(refresh.claims.token_id),
            expires_at=refresh.claims.expires_at,
        )
        return TokenPair(access_token=access.token, refresh_token=refresh.token)

    def _parse_refresh_token(self, refresh_token: str) -> tuple:
        try:
            claims = self.tokens.decode_refresh_token(refresh_token)
            return uuid.UUID(claims.subject), uuid.UUID(claims.token_id)
        except (InvalidTokenError, ValueError) as e:
            raise InvalidRefreshTokenError(context={"reason": type(e).__name__}) from e

    # ══════════════════════════════════════════════════════════════════════
    # Credential changes
    # ══════════════════════════════════════════════════════════════════════

    async def update_credentials(
        self,
        db: AsyncSession,
        user: User,
        email: Optional[str] = None,
        password: Optional[str] = None,
    ) -> User:
        """
        Change the email and/or password of an authenticated user.

        A new email must be confirmed again (verified resets to False and a
        confirmation email goes to the new address). Any change revokes every
        refresh token.

        Raises:
            DuplicateEmailError: the new email belongs to another account
        """
        email_changed = email is not None and email != user.email
        if email_changed:
            if await self.store.get_by_email(db, email) is not None:
                raise DuplicateEmailError()
            user.email = email
            user.verified = False
        if password is not None:
            user.password_hash = self.hasher.hash(password)

        if email_changed or password is not None:
            await self.store.flush_user(db, user.email)
            revoked = await self.store.revoke_all_refresh_tokens(db, user.id)
            logger.info("Credentials updated for user %s; %d sessions revoked", user.id, revoked)

        if email_changed:
            await self._send_confirmation(user.email)
        return user

    async def request_reset(self, db: AsyncSession, email: str) -> None:
        """
        Generate a one-time numeric code and email it.

        A new request replaces any pending code.

        Raises:
            NotFoundError / NotVerifiedError
        """
        user = await self._require_verified_user(db, email)
        code = f"{secrets.randbelow(10 ** RESET_CODE_DIGITS):0{RESET_CODE_DIGITS}d}"
        user.verification_code = code
        user.verification_code_expires_at = datetime.now(timezone.utc) + timedelta(
            seconds=self.reset_code_ttl
        )
        await db.flush()
        await self.mailer.send_reset_code(user.email, code)
        logger.info("Password reset code issued for user %s", user.id)

    async def confirm_reset(
        self, db: AsyncSession, email: str, code: str, new_password: str
    ) -> None:
        """
        Replace the password using a reset code and sign out every device.

        Raises:
            NotFoundError / NotVerifiedError
            InvalidVerificationCodeError: no pending code, mismatch or expired
        """
        user = await self._require_verified_user(db, email)

        pending = user.verification_code
        expires_at = user.verification_code_expires_at
        if pending is None or expires_at is None:
            raise InvalidVerificationCodeError(context={"reason": "no pending code"})
        if _as_utc(expires_at) <= datetime.now(timezone.utc):
            raise InvalidVerificationCodeError(context={"reason": "expired"})
        if not hmac.compare_digest(pending.encode(), code.encode()):
            raise InvalidVerificationCodeError(context={"reason": "mismatch"})

        user.password_hash = self.hasher.hash(new_password)
        user.verification_code = None
        user.verification_code_expires_at = None
        await db.flush()
        revoked = await self.store.revoke_all_refresh_tokens(db, user.id)
        logger.info("Password reset for user %s; %d sessions revoked", user.id, revoked)

    # ══════════════════════════════════════════════════════════════════════
    # Preconditions
    # ══════════════════════════════════════════════════════════════════════

    async def _require_user(self, db: AsyncSession, email: str) -> User:
        user = await self.store.get_by_email(db, email)
        if user is None:
            raise NotFoundError(
                resource="user",
                message="user with given email address does not exist",
            )
        return user

    async def _require_verified_user(self, db: AsyncSession, email: str) -> User:
        user = await self._require_user(db, email)
        if not user.verified:
            raise NotVerifiedError()
        return user


auth_service = AuthService(
    store=credential_store,
    tokens=token_codec,
    hasher=password_hasher,
    mailer=mailer,
    reset_code_ttl=settings.reset_code_ttl,
)
