"""
auth/tokens.py -- JWT issuance and validation.

Security design decisions:
  JWT: python-jose with HS256. Tokens carry only the registered claims
       sub (username), iat and exp. The signing key is handed to TokenIssuer
       once at startup (from Settings.secret_key) and never rotated in-process.

  Validation never returns a partially trusted payload: it either yields a
       TokenClaims or raises one of TokenMalformed / TokenInvalidSignature /
       TokenExpired. The signature is checked before expiry, so a forged token
       reports a bad signature even if its exp has passed.

  No revocation list. An issued token is accepted until it expires.

Layer rule: no imports from api/. Import from core/ is not needed -- the
issuer receives its configuration through the constructor.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import Any

from jose import ExpiredSignatureError, JWTError, jwt
from jose.exceptions import JWTClaimsError

from auth.errors import TokenExpired, TokenInvalidSignature, TokenMalformed
from auth.models import TokenClaims, User

ALGORITHM = "HS256"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _has_required_claims(claims: dict) -> bool:
    """sub must be a non-empty string; iat and exp integer epoch seconds."""
    subject = claims.get("sub")
    return (
        isinstance(subject, str)
        and subject != ""
        and _is_int(claims.get("iat"))
        and _is_int(claims.get("exp"))
    )


class TokenIssuer:
    """Mints and validates signed, time-bounded bearer tokens.

    Usage:
        issuer = TokenIssuer(secret_key=settings.secret_key, ttl_seconds=3600)
        token = issuer.issue(user)
        claims = issuer.validate(token)   # TokenClaims(subject="alice", ...)

    clock is injectable so tests can mint tokens that are already expired.
    """

    def __init__(
        self,
        secret_key: str,
        ttl_seconds: int,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._secret_key = secret_key
        self.ttl_seconds = ttl_seconds
        self._clock = clock or _utc_now

    def issue(self, user: User) -> str:
        """Encode a signed JWT for the user: sub=username, iat=now, exp=now+TTL."""
        now = self._clock().replace(microsecond=0)
        payload = {
            "sub": user.username,
            "iat": now,
            "exp": now + timedelta(seconds=self.ttl_seconds),
        }
        return jwt.encode(payload, self._secret_key, algorithm=ALGORITHM)

    def validate(self, token: str) -> TokenClaims:
        """Verify a JWT and return its claims.

        Raises:
            TokenMalformed:        not a JWT, or sub/iat/exp missing or mistyped.
            TokenInvalidSignature: signature does not match, or alg is not HS256.
            TokenExpired:          signature is valid but exp has passed.
        """
        try:
            unverified = jwt.get_unverified_claims(token)
        except JWTError as exc:
            raise TokenMalformed() from exc
        if not _has_required_claims(unverified):
            raise TokenMalformed()

        try:
            payload = jwt.decode(token, self._secret_key, algorithms=[ALGORITHM])
        except ExpiredSignatureError as exc:
            raise TokenExpired() from exc
        except JWTClaimsError as exc:
            raise TokenMalformed() from exc
        except JWTError as exc:
            raise TokenInvalidSignature() from exc

        return TokenClaims(
            subject=payload["sub"],
            issued_at=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
            expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
        )
