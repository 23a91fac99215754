"""
HealthAPI Backend — User and RefreshToken SQLAlchemy Models
=============================================================

What:  ORM models for the credential store: the `users` table and the
       `refresh_tokens` table holding one row per live session.
Who:   Used by CredentialStore and the user/auth services.

Table Design Rationale:
    - UUID primary keys: non-sequential, can't be enumerated
    - email UNIQUE: uniqueness is enforced by the database, not only by a
      pre-check, so two concurrent registrations cannot both succeed
    - refresh tokens live in their own table instead of an array column:
      login, rotation and logout become single-row INSERT/DELETE deltas, so
      concurrent sessions of one user never overwrite each other's tokens
    - created_at: UTC with timezone (never naive datetimes)
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    """
    Identity and credential record.

    Lifecycle:
        1. Created on registration (verified = False)
        2. verified flips to True exactly once on confirmation
        3. password_hash replaced on reset-confirm or credential update
        4. Deleted on account deletion (cascades to owned rows)
    """

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    # Case-sensitive as stored; external login key
    email: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        unique=True,
    )

    # bcrypt output; never the plaintext
    password_hash: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    verified: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
    )

    # Pending password-reset code; NULL when no reset is in progress
    verification_code: Mapped[Optional[str]] = mapped_column(
        String(16),
        nullable=True,
        default=None,
    )
    verification_code_expires_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        default=None,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}', verified={self.verified})>"


class RefreshToken(Base):
    """
    One issued, not yet consumed or revoked refresh token.

    The primary key is the token's `jti` claim. Presence of a row is what
    makes a cryptographically valid refresh token usable.
    """

    __tablename__ = "refresh_tokens"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
    )

    expires_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    # Revoke-all and per-user lookups filter on user_id
    __table_args__ = (
        Index("idx_refresh_tokens_user_id", "user_id"),
    )

    def __repr__(self) -> str:
        return f"<RefreshToken(id={self.id}, user_id={self.user_id})>"
