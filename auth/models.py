"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Stores, the token
issuer and routes do the work.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass
class User:
    """A registered credential record.

    hashed_password is a bcrypt hash; the plaintext never reaches this object.
    id and created_at are assigned by the store on registration.
    """

    username: str
    hashed_password: str
    id: int | None = None
    created_at: str | None = None


@dataclass(frozen=True)
class TokenClaims:
    """Verified contents of a bearer token.

    Built only by TokenIssuer.validate(), so an instance always means the
    signature matched and the token had not expired at validation time.
    """

    subject: str  # username
    issued_at: datetime
    expires_at: datetime
