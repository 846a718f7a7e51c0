"""
auth/dependencies.py -- FastAPI Depends() helper for bearer-token authentication.

get_current_claims() is the request interceptor for protected routes. It runs
before the handler body: it pulls the token out of the Authorization header
and hands it to the TokenIssuer parked on app.state by the lifespan.

A missing or non-Bearer header is answered here with 401. Token failures
(expired, bad signature, malformed) propagate as auth.errors exceptions and
are rendered as 401 by the handler in api/main.py.

The user record is deliberately not re-read: a token remains valid until it
expires.

Layer rule: may import fastapi (Depends/HTTPException/Request) because this
module is part of the FastAPI dependency injection system. No imports from api/.
"""

from __future__ import annotations

from fastapi import HTTPException, Request

from auth.models import TokenClaims
from auth.tokens import TokenIssuer


def get_current_claims(request: Request) -> TokenClaims:
    """Require a valid bearer token. Raises HTTP 401 if none is presented.

    Use as a FastAPI dependency:
        @router.get("/protected")
        def route(claims: TokenClaims = Depends(get_current_claims)): ...
    """
    auth_header = request.headers.get("Authorization", "")
    scheme, _, token = auth_header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise HTTPException(
            status_code=401,
            detail={"code": "unauthorized", "message": "Authentication required."},
            headers={"WWW-Authenticate": "Bearer"},
        )
    issuer: TokenIssuer = request.app.state.token_issuer
    return issuer.validate(token.strip())
