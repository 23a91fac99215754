"""
HealthAPI Backend — Measurement SQLAlchemy Model
==================================================

What:  Body measurement records owned by a user.

Query Patterns:
    - List a user's measurements newest first:
      WHERE user_id = :uid ORDER BY created_at DESC
      → served by idx_measurements_user_created
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, Float, ForeignKey, Index, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class Measurement(Base):
    """A single body measurement: weight in kg plus optional circumferences in cm."""

    __tablename__ = "measurements"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )

    weight: Mapped[float] = mapped_column(Float, nullable=False)
    chest: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    waist: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    hips: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    thigh: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    biceps: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        Index("idx_measurements_user_created", "user_id", "created_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<Measurement(id={self.id}, user_id={self.user_id}, "
            f"weight={self.weight}, created_at='{self.created_at}')>"
        )
