"""ORM models; importing this package registers every table on Base.metadata."""

from app.models.measurement import Measurement
from app.models.profile import Profile
from app.models.user import RefreshToken, User

__all__ = ["Measurement", "Profile", "RefreshToken", "User"]
