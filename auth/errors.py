"""
auth/errors.py -- Exception taxonomy for credential storage, login and tokens.

Every error carries a machine-readable code and the HTTP status the API layer
should answer with. api/main.py renders all of them through one exception
handler into the standard ErrorResponse envelope, so route handlers simply
let them propagate.

Unknown username and wrong password are both AuthenticationFailed with the
same message. UserNotFound exists for the store contract only and is never
surfaced by the login flow.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations


class AuthError(Exception):
    """Base class. Subclasses override code, status_code and message."""

    code: str = "auth_error"
    status_code: int = 400
    message: str = "Authentication error."

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)


class DuplicateUsername(AuthError):
    code = "duplicate_username"
    status_code = 409
    message = "A user with that username already exists."


class UserNotFound(AuthError):
    code = "not_found"
    status_code = 404
    message = "User not found."


class AuthenticationFailed(AuthError):
    code = "bad_credentials"
    status_code = 401
    message = "Invalid username or password."


class TokenError(AuthError):
    """Any reason a bearer token cannot be accepted."""

    code = "invalid_token"
    status_code = 401
    message = "Invalid token."


class TokenExpired(TokenError):
    code = "token_expired"
    message = "Token has expired."


class TokenInvalidSignature(TokenError):
    code = "invalid_signature"
    message = "Token signature verification failed."


class TokenMalformed(TokenError):
    code = "malformed_token"
    message = "Token is malformed."


class StorageUnavailable(AuthError):
    code = "storage_unavailable"
    status_code = 503
    message = "Credential storage is unavailable."
