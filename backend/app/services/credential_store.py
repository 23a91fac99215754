"""
HealthAPI Backend — Credential Store
======================================

What:  Persistence contract for users and their refresh-token identifiers.
Why:   The auth flow states its preconditions in terms of this small API
       ("does this jti exist for this user?", "consume it") instead of raw
       queries, which keeps the concurrency rules in one place.
How:   Stateless methods taking the request's AsyncSession; they flush but
       never commit (the request dependency owns the transaction).

Concurrency:
    Refresh-token changes are single-row deltas:
        add      → INSERT one row
        consume  → DELETE ... WHERE id = :jti AND user_id = :uid
        revoke   → DELETE ... WHERE user_id = :uid
    `consume` reports whether exactly one row was deleted. When two requests
    race to rotate the same token, the database serializes the DELETEs and
    only one of them sees rowcount == 1, so a token can never be spent twice.
"""

import logging
import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import DuplicateEmailError
from app.models.user import RefreshToken, User

logger = logging.getLogger(__name__)


class CredentialStore:
    """Query and mutation helpers for User and RefreshToken rows."""

    # ── Users ─────────────────────────────────────────────────────────────

    async def get_by_email(self, db: AsyncSession, email: str) -> Optional[User]:
        result = await db.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def get_by_id(self, db: AsyncSession, user_id: uuid.UUID) -> Optional[User]:
        result = await db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def add_user(self, db: AsyncSession, user: User) -> User:
        """
        Insert a new user and flush so the unique email constraint is checked now.

        Raises:
            DuplicateEmailError: another transaction registered the same email
                between our pre-check and this insert.
        """
        db.add(user)
        await self.flush_user(db, user.email)
        return user

    async def flush_user(self, db: AsyncSession, email: str) -> None:
        """Flush pending user changes, mapping a unique-email violation to DuplicateEmailError."""
        try:
            await db.flush()
        except IntegrityError as e:
            # The session must be rolled back; the request dependency does that
            logger.info("Unique email constraint rejected a write")
            raise DuplicateEmailError(context={"constraint": "users.email"}) from e

    # ── Refresh tokens ────────────────────────────────────────────────────

    async def add_refresh_token(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        token_id: uuid.UUID,
        expires_at: datetime,
    ) -> None:
        db.add(RefreshToken(id=token_id, user_id=user_id, expires_at=expires_at))
        await db.flush()

    async def consume_refresh_token(
        self, db: AsyncSession, user_id: uuid.UUID, token_id: uuid.UUID
    ) -> bool:
        """Delete one session row; True only if this call removed it."""
        result = await db.execute(
            delete(RefreshToken)
            .where(RefreshToken.id == token_id, RefreshToken.user_id == user_id)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def revoke_all_refresh_tokens(self, db: AsyncSession, user_id: uuid.UUID) -> int:
        """Delete every session row of a user; returns how many were removed."""
        result = await db.execute(
            delete(RefreshToken)
            .where(RefreshToken.user_id == user_id)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount or 0


credential_store = CredentialStore()
