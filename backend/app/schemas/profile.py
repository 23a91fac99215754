"""HealthAPI Backend — Profile Schemas."""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import Field

from app.schemas.common import CamelModel


class ProfileUpdateRequest(CamelModel):
    height: Optional[int] = Field(default=None, ge=50, le=272, description="Height in cm")


class ProfileResponse(CamelModel):
    id: uuid.UUID
    user_id: uuid.UUID
    height: Optional[int] = Field(default=None, description="Height in cm")
    updated_at: datetime
