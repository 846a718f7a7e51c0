"""
auth/passwords.py -- bcrypt password hashing.

Using bcrypt directly rather than passlib[bcrypt] because passlib's internal
wrap-bug detection creates a password longer than 72 bytes, which bcrypt 4.x
rejects with an explicit error.

The cost factor comes from Settings.bcrypt_rounds and is fixed for the life
of the hasher. Existing hashes keep verifying after a change because bcrypt
embeds the cost in the hash string.
"""

from __future__ import annotations

import bcrypt

# bcrypt only looks at the first 72 bytes; newer releases raise instead of
# truncating. api/models.py rejects longer passwords before they get here.
MAX_PASSWORD_BYTES = 72


class PasswordHasher:
    """Salted one-way hashing with a configured bcrypt cost factor.

    Usage:
        hasher = PasswordHasher(rounds=12)
        hashed = hasher.hash("s3cret")
        hasher.verify("s3cret", hashed)   # True
    """

    def __init__(self, rounds: int = 12) -> None:
        self.rounds = rounds
        # Timing equalization dummy hash. Computed once so the first login
        # attempt for an unknown user is not measurably slower than later ones.
        self._dummy_hash = self.hash("authshim_timing_dummy")

    def hash(self, plain: str) -> str:
        """Return a bcrypt hash of the plaintext. A fresh salt is drawn per call.

        Raises ValueError for passwords longer than 72 bytes on bcrypt >= 4.1.
        """
        return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt(rounds=self.rounds)).decode("utf-8")

    def verify(self, plain: str, hashed: str) -> bool:
        """Return True if the plaintext matches the hash. Malformed input returns False."""
        try:
            return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
        except (ValueError, TypeError, AttributeError):
            return False

    def verify_dummy(self, plain: str) -> None:
        """Burn one bcrypt verification so an unknown username costs as much as a wrong password."""
        self.verify(plain, self._dummy_hash)
