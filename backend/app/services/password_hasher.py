"""
HealthAPI Backend — Password Hasher
=====================================

What:  One-way salted password hashing and verification with bcrypt.
Why:   Hashing is applied explicitly by the service layer before the User is
       persisted (no ORM hook), so the "hash != plaintext" invariant can be
       tested without a database.
How:   bcrypt.hashpw with a per-hash random salt; bcrypt.checkpw compares in
       constant time.
"""

import bcrypt

from app.config import settings


class PasswordHasher:
    """
    bcrypt wrapper with a configurable work factor.

    Rounds come from BCRYPT_ROUNDS (default 12). The test suite lowers this to
    the bcrypt minimum (4) to keep hashing fast.
    """

    def __init__(self, rounds: int = 12):
        self.rounds = rounds

    def hash(self, password: str) -> str:
        """Hash a plaintext password; the result embeds salt and cost."""
        if not password:
            raise ValueError("Password cannot be empty")
        hashed = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=self.rounds))
        return hashed.decode("utf-8")

    def verify(self, password: str, password_hash: str) -> bool:
        """Constant-time comparison against a bcrypt hash; malformed hashes never match."""
        if not password or not password_hash:
            return False
        try:
            return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
        except (ValueError, TypeError):
            return False


password_hasher = PasswordHasher(rounds=settings.bcrypt_rounds)
